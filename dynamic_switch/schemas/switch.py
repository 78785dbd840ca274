"""Switch API schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from schemas.routing import Item


class SwitchExecuteRequest(BaseModel):
    node_id: str = "dynamic_switch"
    parameters: dict[str, Any] = {}
    items: list[Item] = []
    continue_on_fail: bool = False


class SwitchExecuteResponse(BaseModel):
    execution_id: str
    outputs: list[list[Item]]
    output_labels: list[str]


class SwitchErrorOut(BaseModel):
    code: str
    message: str
    item_index: int | None = None


class OperatorsResponse(BaseModel):
    """Operation names accepted for each data type."""

    operators: dict[str, list[str]]
