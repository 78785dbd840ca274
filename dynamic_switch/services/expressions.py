"""Jinja2 expression resolver for switch parameters.

Resolves ``{{ json.field }}`` expressions in node parameters against the item
being routed. A parameter that is exactly one expression yields the native
value (number, bool, list...); anything else renders to a string.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from jinja2 import BaseLoader, Environment, StrictUndefined, UndefinedError

logger = logging.getLogger(__name__)

_env = Environment(
    loader=BaseLoader(),
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)

_SINGLE_EXPRESSION = re.compile(r"\s*\{\{(?P<expr>(?:(?!\{\{|\}\}).)*)\}\}\s*", re.DOTALL)


def build_item_context(data: dict | None, item_index: int) -> dict:
    """Expression variables for one item: ``json`` payload and ``item_index``."""
    return {"json": data if data is not None else {}, "item_index": item_index}


def resolve_expressions(template_str: str, context: dict) -> Any:
    """Resolve ``{{ ... }}`` expressions in a string.

    On error (undefined variable, syntax error), returns the original string
    for graceful degradation.
    """
    if not template_str or "{{" not in template_str:
        return template_str

    single = _SINGLE_EXPRESSION.fullmatch(template_str)
    try:
        if single:
            return _env.compile_expression(single.group("expr").strip())(**context)
        tpl = _env.from_string(template_str)
        return tpl.render(context)
    except (UndefinedError, Exception) as exc:
        logger.debug("Expression resolution failed: %s, returning original", exc)
        return template_str


def resolve_parameter_expressions(value: Any, context: dict) -> Any:
    """Recursively resolve expressions in a parameter value (str, dict or list)."""
    if isinstance(value, str):
        return resolve_expressions(value, context)
    if isinstance(value, dict):
        return {key: resolve_parameter_expressions(item, context) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_parameter_expressions(item, context) for item in value]
    return value
