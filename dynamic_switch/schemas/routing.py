"""Routing schemas: items, rules and the resolved switch configuration."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

MIN_OUTPUTS = 1
MAX_OUTPUTS = 50
DROP_ITEM = -1


class RoutingMode(str, enum.Enum):
    EXPRESSION = "expression"
    RULES = "rules"


class DataType(str, enum.Enum):
    BOOLEAN = "boolean"
    DATE_TIME = "dateTime"
    NUMBER = "number"
    STRING = "string"


class MatchStrategy(str, enum.Enum):
    FIRST = "first"
    ALL = "all"


class Operator(str, enum.Enum):
    EQUAL = "equal"
    NOT_EQUAL = "notEqual"
    SMALLER = "smaller"
    SMALLER_EQUAL = "smallerEqual"
    LARGER = "larger"
    LARGER_EQUAL = "largerEqual"
    AFTER = "after"
    BEFORE = "before"
    CONTAINS = "contains"
    NOT_CONTAINS = "notContains"
    STARTS_WITH = "startsWith"
    NOT_STARTS_WITH = "notStartsWith"
    ENDS_WITH = "endsWith"
    NOT_ENDS_WITH = "notEndsWith"
    REGEX = "regex"
    NOT_REGEX = "notRegex"


class PairedItem(BaseModel):
    """Back-reference to the position of an item in the input batch."""

    model_config = ConfigDict(frozen=True)

    item: int


class Item(BaseModel):
    """A single record: an opaque JSON payload plus its input position.

    Items are never modified while routing; the same instance is appended to
    every output it is routed to.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    data: dict[str, Any] = Field(default={}, alias="json")
    paired_item: PairedItem | None = Field(default=None, alias="pairedItem")


class RoutingRule(BaseModel):
    """One entry of ``rulesCollection.rules``.

    Values are kept raw; the switch normalises ``value2`` and floors
    ``output`` while evaluating. Regex rules take their expression from
    ``pattern`` when it is set.
    """

    operation: str | None = None
    value2: Any = None
    pattern: Any = None
    output: Any = 0


class RoutingConfig(BaseModel):
    """Batch-wide switch settings, resolved once from the first item."""

    model_config = ConfigDict(frozen=True)

    number_of_outputs: int = Field(2, ge=MIN_OUTPUTS, le=MAX_OUTPUTS)
    mode: RoutingMode = RoutingMode.RULES
    data_type: DataType = DataType.NUMBER
    match_strategy: MatchStrategy = MatchStrategy.FIRST
    continue_on_fail: bool = False
