"""Execution context handed to components for one batch of items."""

from __future__ import annotations

from typing import Any, Iterable

from schemas.routing import Item, PairedItem
from services.expressions import build_item_context, resolve_parameter_expressions

_MISSING = object()


def _lookup(parameters: dict, name: str):
    """Resolve a dotted parameter name like ``rulesCollection.rules``."""
    current: Any = parameters
    for part in name.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _paired(raw: Item | dict, index: int) -> Item:
    item = raw if isinstance(raw, Item) else Item.model_validate(raw)
    if item.paired_item is None:
        item = item.model_copy(update={"paired_item": PairedItem(item=index)})
    return item


class NodeExecutionContext:
    """In-memory host for a single component invocation.

    Parameters are the node's raw settings; any ``{{ ... }}`` expression in
    them is resolved per item when read through :meth:`get_node_parameter`.
    """

    def __init__(
        self,
        node_id: str,
        parameters: dict | None,
        items: Iterable[Item | dict],
        continue_on_fail: bool = False,
    ) -> None:
        self.node_id = node_id
        self._parameters = parameters or {}
        self._items = [_paired(raw, i) for i, raw in enumerate(items)]
        self._continue_on_fail = continue_on_fail

    def get_input_data(self) -> list[Item]:
        return self._items

    def get_node_parameter(self, name: str, item_index: int, default: Any = _MISSING) -> Any:
        """Return parameter *name* as seen by item *item_index*.

        Falls back to *default* when the parameter is not set; raises KeyError
        when there is no default either.
        """
        raw = _lookup(self._parameters, name)
        if raw is _MISSING:
            if default is _MISSING:
                raise KeyError(f"Could not get parameter '{name}' for node '{self.node_id}'")
            return default
        return resolve_parameter_expressions(raw, self._item_context(item_index))

    def continue_on_fail(self) -> bool:
        return self._continue_on_fail

    def _item_context(self, item_index: int) -> dict:
        if 0 <= item_index < len(self._items):
            return build_item_context(self._items[item_index].data, item_index)
        return build_item_context(None, item_index)
