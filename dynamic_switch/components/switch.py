"""Dynamic switch component: routes each item to one or more numbered outputs."""

from __future__ import annotations

import logging
import math
from typing import Any

from pydantic import ValidationError

from components import register
from components.base import ExecutionContext
from components.errors import InvalidParameterError, OutputIndexOutOfRangeError, SwitchError
from components.operators import (
    OPERATORS,
    REGEX_OPERATORS,
    normalize_value,
    resolve_operator,
    to_number,
    to_text,
)
from config import settings
from logging_config import node_id_var
from schemas.routing import (
    DROP_ITEM,
    MAX_OUTPUTS,
    MIN_OUTPUTS,
    DataType,
    Item,
    MatchStrategy,
    PairedItem,
    RoutingConfig,
    RoutingMode,
    RoutingRule,
)
from services.execution import NodeExecutionContext

logger = logging.getLogger(__name__)


@register("dynamic_switch")
def dynamic_switch_factory(node):
    """Build a dynamic switch node.

    The node's ``extra_config`` holds the switch parameters (``mode``,
    ``numberOfOutputs``, ``rulesCollection`` ...) plus ``continue_on_fail``.
    The node function reads ``state["items"]`` and returns the routed
    ``outputs`` with their ``output_labels``.
    """
    extra = node.component_config.extra_config
    continue_on_fail = bool(extra.get("continue_on_fail", False))

    def dynamic_switch_node(state: dict) -> dict:
        ctx = NodeExecutionContext(node.node_id, extra, state.get("items", []), continue_on_fail)
        outputs = execute(ctx)
        labels = resolve_output_labels(len(outputs), ctx.get_node_parameter("outputLabels", 0, ""))
        return {"outputs": outputs, "output_labels": labels}

    return dynamic_switch_node


# ── Channel allocation ─────────────────────────────────────────────────────


def resolve_output_count(requested: Any) -> int:
    """Clamp a requested output count into ``[MIN_OUTPUTS, MAX_OUTPUTS]``."""
    n = to_number(requested) if requested is not None else math.nan
    if math.isnan(n):
        n = settings.DEFAULT_NUMBER_OF_OUTPUTS
    if math.isinf(n):
        return MAX_OUTPUTS if n > 0 else MIN_OUTPUTS
    return max(MIN_OUTPUTS, min(math.floor(n), MAX_OUTPUTS))


def allocate_outputs(count: int) -> list[list[Item]]:
    return [[] for _ in range(count)]


def resolve_output_labels(count: int, labels_raw: Any) -> list[str]:
    """Display names for each output: custom comma-separated labels, else ``Route i``."""
    parts = [part.strip() for part in to_text(labels_raw).split(",")]
    parts = [part for part in parts if part]
    return [parts[i] if i < len(parts) else f"Route {i}" for i in range(count)]


def floor_index(value: Any) -> int | float:
    """Floor an output index; NaN and infinities are returned as-is."""
    n = to_number(value)
    return math.floor(n) if math.isfinite(n) else n


def ensure_range(index: int | float, count: int, item_index: int | None = None) -> None:
    """Raise unless *index* is an integer in ``[0, count)``."""
    is_integer = isinstance(index, int) or (isinstance(index, float) and index.is_integer())
    if isinstance(index, bool) or not is_integer or index < 0 or index >= count:
        raise OutputIndexOutOfRangeError(to_text(index), count, item_index)


# ── Configuration ──────────────────────────────────────────────────────────


def resolve_routing_config(ctx: ExecutionContext) -> RoutingConfig:
    """Read the batch-wide settings once, from the first item's point of view."""
    try:
        return RoutingConfig(
            number_of_outputs=resolve_output_count(
                ctx.get_node_parameter("numberOfOutputs", 0, settings.DEFAULT_NUMBER_OF_OUTPUTS)
            ),
            mode=ctx.get_node_parameter("mode", 0, RoutingMode.RULES.value),
            data_type=ctx.get_node_parameter("dataType", 0, DataType.NUMBER.value),
            match_strategy=ctx.get_node_parameter("matchStrategy", 0, "") or MatchStrategy.FIRST.value,
            continue_on_fail=ctx.continue_on_fail(),
        )
    except ValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors())
        raise InvalidParameterError(f"Invalid switch parameters: {fields}") from exc


def _load_rules(ctx: ExecutionContext, item_index: int) -> list[RoutingRule]:
    raw_rules = ctx.get_node_parameter("rulesCollection.rules", item_index, []) or []
    if not isinstance(raw_rules, list):
        raise InvalidParameterError("Routing rules must be a list", item_index)
    try:
        return [RoutingRule.model_validate(rule) for rule in raw_rules]
    except ValidationError as exc:
        raise InvalidParameterError(f"Invalid routing rule: {exc.error_count()} error(s)", item_index) from exc


# ── Dispatch ───────────────────────────────────────────────────────────────


def execute(ctx: ExecutionContext) -> list[list[Item]]:
    """Route every input item and return one list of items per output.

    An item routed by several rules appears in several outputs (or several
    times in one output). With continue-on-fail, an item that raises a
    SwitchError is replaced by an ``{"error": ...}`` item on output 0.
    """
    items = ctx.get_input_data()
    config = resolve_routing_config(ctx)
    outputs = allocate_outputs(config.number_of_outputs)

    token = node_id_var.set(str(ctx.node_id))
    try:
        for i, item in enumerate(items):
            try:
                if config.mode is RoutingMode.EXPRESSION:
                    _route_by_expression(ctx, outputs, item, i)
                else:
                    _route_by_rules(ctx, config, outputs, item, i)
            except SwitchError as exc:
                if exc.item_index is None:
                    exc.item_index = i
                if not config.continue_on_fail:
                    raise
                logger.warning("Item %d failed, sending error to output 0: %s", i, exc.message)
                outputs[0].append(Item(json={"error": exc.message}, pairedItem=PairedItem(item=i)))

        logger.info(
            "Routed %d items (%s mode) into %d outputs: %s",
            len(items),
            config.mode.value,
            len(outputs),
            [len(output) for output in outputs],
        )
    finally:
        node_id_var.reset(token)
    return outputs


def _route_by_expression(ctx: ExecutionContext, outputs: list[list[Item]], item: Item, i: int) -> None:
    target = floor_index(ctx.get_node_parameter("expressionOutput", i, 0))
    if target < 0 or target >= len(outputs):
        logger.debug("Item %d: output %s out of range, using fallback", i, to_text(target))
        _route_fallback(ctx, outputs, item, i)
        return
    ensure_range(target, len(outputs), i)
    outputs[target].append(item)


def _route_by_rules(
    ctx: ExecutionContext,
    config: RoutingConfig,
    outputs: list[list[Item]],
    item: Item,
    i: int,
) -> None:
    data_type = config.data_type
    left = normalize_value(data_type, ctx.get_node_parameter("value1", i, None))
    rules = _load_rules(ctx, i)
    case_insensitive = data_type is DataType.STRING and bool(ctx.get_node_parameter("caseInsensitive", i, True))

    matched = False
    for position, rule in enumerate(rules):
        operator = resolve_operator(data_type, rule.operation)
        if operator in REGEX_OPERATORS and rule.pattern is not None:
            right = rule.pattern
        else:
            right = normalize_value(data_type, rule.value2)

        lhs, rhs = left, right
        if case_insensitive and operator not in REGEX_OPERATORS:
            lhs, rhs = to_text(left).lower(), to_text(right).lower()

        if not OPERATORS[operator](lhs, rhs):
            continue

        index = floor_index(rule.output)
        ensure_range(index, len(outputs), i)
        outputs[index].append(item)
        matched = True
        logger.debug("Item %d: rule %d (%s) matched, output %d", i, position, operator.value, index)
        if config.match_strategy is MatchStrategy.FIRST:
            break

    if not matched:
        _route_fallback(ctx, outputs, item, i)


def _route_fallback(ctx: ExecutionContext, outputs: list[list[Item]], item: Item, i: int) -> None:
    fallback = ctx.get_node_parameter("fallbackOutput", i, DROP_ITEM)
    if to_number(fallback) == DROP_ITEM:
        logger.debug("Dropping item %d", i)
        return
    index = floor_index(fallback)
    ensure_range(index, len(outputs), i)
    outputs[index].append(item)
