"""Base protocols for workflow components."""

from __future__ import annotations

from typing import Any, Callable, Protocol

from schemas.routing import Item


class ComponentFactory(Protocol):
    """Protocol for component factories.

    A factory receives a node (``node_id`` plus
    ``component_config.extra_config``) and returns a node function that takes
    the execution state and returns a state update dict.
    """

    def __call__(self, node: Any) -> Callable[[dict], dict]: ...


class ExecutionContext(Protocol):
    """What a component may ask of the host while processing one batch."""

    node_id: str

    def get_input_data(self) -> list[Item]: ...

    def get_node_parameter(self, name: str, item_index: int, default: Any = ...) -> Any: ...

    def continue_on_fail(self) -> bool: ...
