"""Tests for the Jinja2 expression resolver."""

from __future__ import annotations

from services.expressions import build_item_context, resolve_expressions, resolve_parameter_expressions


def _ctx(data: dict | None = None, item_index: int = 0) -> dict:
    return build_item_context(data, item_index)


def test_template_renders_to_string():
    result = resolve_expressions("Hello {{ json.name }}", _ctx({"name": "world"}))
    assert result == "Hello world"


def test_single_expression_keeps_native_type():
    assert resolve_expressions("{{ json.count }}", _ctx({"count": 3})) == 3
    assert resolve_expressions("  {{ json.flag }} ", _ctx({"flag": False})) is False
    assert resolve_expressions("{{ json.tags }}", _ctx({"tags": ["a", "b"]})) == ["a", "b"]


def test_single_expression_arithmetic_and_comparison():
    assert resolve_expressions("{{ json.priority - 1 }}", _ctx({"priority": 3})) == 2
    assert resolve_expressions("{{ json.score > 50 }}", _ctx({"score": 80})) is True


def test_nested_access():
    result = resolve_expressions("{{ json.order.status }}", _ctx({"order": {"status": "paid"}}))
    assert result == "paid"


def test_item_index_available():
    assert resolve_expressions("{{ item_index }}", _ctx({}, item_index=4)) == 4


def test_missing_field_is_none():
    assert resolve_expressions("{{ json.missing }}", _ctx({})) is None


def test_no_expressions():
    assert resolve_expressions("plain text", _ctx()) == "plain text"
    assert resolve_expressions("", _ctx()) == ""


def test_undefined_variable_returns_original():
    template = "Hello {{ nonexistent.value }}"
    assert resolve_expressions(template, _ctx()) == template


def test_syntax_error_returns_original():
    template = "{{ json. }}"
    assert resolve_expressions(template, _ctx()) == template


def test_two_expressions_render_as_text():
    result = resolve_expressions("{{ json.a }}{{ json.b }}", _ctx({"a": 1, "b": 2}))
    assert result == "12"


def test_jinja_filters():
    result = resolve_expressions("{{ json.category | upper }}", _ctx({"category": "food"}))
    assert result == "FOOD"


def test_recursive_parameters():
    parameters = {
        "value1": "{{ json.v }}",
        "rulesCollection": {
            "rules": [
                {"operation": "larger", "value2": "{{ json.limit }}", "output": 1},
                {"operation": "equal", "value2": "static", "output": 0},
            ],
        },
        "caseInsensitive": True,
    }
    result = resolve_parameter_expressions(parameters, _ctx({"v": 7, "limit": 5}))
    assert result["value1"] == 7
    assert result["rulesCollection"]["rules"][0]["value2"] == 5
    assert result["rulesCollection"]["rules"][1]["value2"] == "static"
    assert result["caseInsensitive"] is True
    assert parameters["value1"] == "{{ json.v }}"
