"""Operator table and value coercion for the dynamic switch rules."""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, NamedTuple

from components.errors import InvalidDateTimeError, UnknownOperatorError
from schemas.routing import DataType, Operator

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)

_DECIMAL_LITERAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_RADIX_LITERAL = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")
_RADIX = {"x": 16, "o": 8, "b": 2}


# ── Coercion ───────────────────────────────────────────────────────────────


def _is_number(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def to_number(v) -> int | float:
    """Coerce the way workflow expressions do; non-numeric values give NaN.

    ``None`` and blank strings are 0, booleans are 0/1, strings may be
    decimal, hex/octal/binary (``0x1f``) or ``Infinity`` literals.
    """
    if v is None:
        return 0
    if isinstance(v, bool):
        return int(v)
    if _is_number(v):
        return v
    if isinstance(v, (datetime, date)):
        return to_epoch_millis(v)
    if isinstance(v, str):
        s = v.strip()
        if not s:
            return 0
        if _DECIMAL_LITERAL.fullmatch(s):
            if any(c in s for c in ".eE"):
                return float(s)
            try:
                return int(s)
            except ValueError:
                # past the int digit limit
                return float(s)
        if _RADIX_LITERAL.fullmatch(s):
            return int(s[2:], _RADIX[s[1].lower()])
        if s in ("Infinity", "+Infinity"):
            return math.inf
        if s == "-Infinity":
            return -math.inf
    return math.nan


def _number_or_zero(v) -> int | float:
    """Numeric operand for ordering comparisons; anything non-numeric is 0."""
    n = to_number(v)
    if not n or math.isnan(n):
        return 0
    return n


def to_text(v) -> str:
    """String form of a scalar as the workflow host renders it."""
    if v is None:
        return ""
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float):
        if math.isnan(v):
            return "NaN"
        if math.isinf(v):
            return "Infinity" if v > 0 else "-Infinity"
        if v.is_integer() and abs(v) < 1e21:
            return str(int(v))
    if isinstance(v, (list, tuple)):
        return ",".join(to_text(element) for element in v)
    if isinstance(v, dict):
        return "[object Object]"
    return str(v)


def _display(v) -> str:
    """Like :func:`to_text`, but a missing value shows as ``null``."""
    return "null" if v is None else to_text(v)


def _to_dt(v: str) -> datetime | None:
    """Safely coerce to datetime (ISO 8601)."""
    try:
        return datetime.fromisoformat(v.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def _datetime_millis(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - _EPOCH) // _MILLISECOND


def to_epoch_millis(v) -> int | float:
    """Convert a date-time value to epoch milliseconds.

    Numbers pass through untouched. Strings must be ISO 8601; naive values
    are read as UTC. Dates, datetimes and anything with a ``timestamp()``
    accessor are converted.
    """
    if _is_number(v):
        return v
    if isinstance(v, str):
        parsed = _to_dt(v)
        if parsed is not None:
            return _datetime_millis(parsed)
    elif isinstance(v, datetime):
        return _datetime_millis(v)
    elif isinstance(v, date):
        return _datetime_millis(datetime.combine(v, time.min))
    elif callable(getattr(v, "timestamp", None)):
        try:
            millis = float(v.timestamp()) * 1000
        except (TypeError, ValueError, OverflowError):
            millis = math.nan
        if math.isfinite(millis):
            return int(millis)
    raise InvalidDateTimeError(_display(v))


def normalize_value(data_type: DataType, value: Any) -> Any:
    """Bring a left or right operand into the form the operators compare."""
    if data_type is DataType.DATE_TIME:
        return to_epoch_millis(value)
    return value


# ── Regex ──────────────────────────────────────────────────────────────────

_REGEX_LITERAL = re.compile(r"/(.*?)/([dgimsuy]*)")
_FLAG_BITS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "d": 0, "g": 0, "u": 0, "y": 0}
_NAMED_GROUP = re.compile(r"(?<!\\)\(\?<(?![=!])")
_NAMED_BACKREF = re.compile(r"\\k<(\w+)>")


class ParsedRegex(NamedTuple):
    pattern: re.Pattern
    sticky: bool

    def test(self, text: str) -> bool:
        if self.sticky:
            return self.pattern.match(text) is not None
        return self.pattern.search(text) is not None


def parse_regex(value: Any) -> ParsedRegex | None:
    """Parse ``/body/flags`` (or a bare pattern) into a compiled regex.

    Returns None for malformed patterns or repeated flags.
    """
    source = to_text(value)
    literal = _REGEX_LITERAL.fullmatch(source)
    if literal:
        body, flags = literal.group(1), literal.group(2)
    else:
        body, flags = source, ""

    if len(set(flags)) != len(flags):
        logger.debug("Rejecting regex %r: repeated flags", source)
        return None

    bits = 0
    for flag in flags:
        bits |= _FLAG_BITS[flag]

    body = _NAMED_GROUP.sub("(?P<", body)
    body = _NAMED_BACKREF.sub(r"(?P=\1)", body)
    try:
        pattern = re.compile(body, bits)
    except re.error as exc:
        logger.debug("Rejecting regex %r: %s", source, exc)
        return None
    return ParsedRegex(pattern, "y" in flags)


def _regex_match(fv, rv) -> bool:
    regex = parse_regex(rv)
    return regex is not None and regex.test(to_text(fv))


def _regex_not_match(fv, rv) -> bool:
    regex = parse_regex(rv)
    return regex is None or not regex.test(to_text(fv))


# ── Operator table ─────────────────────────────────────────────────────────


def _strict_equals(a, b) -> bool:
    """Equality without coercion across kinds: 1 never equals "1" or True."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if _is_number(a) and _is_number(b):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return a is b


OPERATORS: dict[Operator, Callable[[Any, Any], bool]] = {
    # Equality
    Operator.EQUAL: lambda fv, rv: _strict_equals(fv, rv),
    Operator.NOT_EQUAL: lambda fv, rv: not _strict_equals(fv, rv),

    # Number
    Operator.SMALLER: lambda fv, rv: _number_or_zero(fv) < _number_or_zero(rv),
    Operator.SMALLER_EQUAL: lambda fv, rv: _number_or_zero(fv) <= _number_or_zero(rv),
    Operator.LARGER: lambda fv, rv: _number_or_zero(fv) > _number_or_zero(rv),
    Operator.LARGER_EQUAL: lambda fv, rv: _number_or_zero(fv) >= _number_or_zero(rv),

    # Datetime (operands are epoch milliseconds)
    Operator.AFTER: lambda fv, rv: fv > rv,
    Operator.BEFORE: lambda fv, rv: fv < rv,

    # String
    Operator.CONTAINS: lambda fv, rv: to_text(rv) in to_text(fv),
    Operator.NOT_CONTAINS: lambda fv, rv: to_text(rv) not in to_text(fv),
    Operator.STARTS_WITH: lambda fv, rv: to_text(fv).startswith(to_text(rv)),
    Operator.NOT_STARTS_WITH: lambda fv, rv: not to_text(fv).startswith(to_text(rv)),
    Operator.ENDS_WITH: lambda fv, rv: to_text(fv).endswith(to_text(rv)),
    Operator.NOT_ENDS_WITH: lambda fv, rv: not to_text(fv).endswith(to_text(rv)),
    Operator.REGEX: _regex_match,
    Operator.NOT_REGEX: _regex_not_match,
}

DATA_TYPE_OPERATORS: dict[DataType, tuple[Operator, ...]] = {
    DataType.BOOLEAN: (Operator.EQUAL, Operator.NOT_EQUAL),
    DataType.DATE_TIME: (Operator.AFTER, Operator.BEFORE),
    DataType.NUMBER: (
        Operator.SMALLER,
        Operator.SMALLER_EQUAL,
        Operator.EQUAL,
        Operator.NOT_EQUAL,
        Operator.LARGER,
        Operator.LARGER_EQUAL,
    ),
    DataType.STRING: (
        Operator.CONTAINS,
        Operator.NOT_CONTAINS,
        Operator.STARTS_WITH,
        Operator.NOT_STARTS_WITH,
        Operator.ENDS_WITH,
        Operator.NOT_ENDS_WITH,
        Operator.EQUAL,
        Operator.NOT_EQUAL,
        Operator.REGEX,
        Operator.NOT_REGEX,
    ),
}

REGEX_OPERATORS = frozenset({Operator.REGEX, Operator.NOT_REGEX})

DEFAULT_OPERATION: dict[DataType, Operator] = {
    DataType.BOOLEAN: Operator.EQUAL,
    DataType.DATE_TIME: Operator.AFTER,
    DataType.NUMBER: Operator.EQUAL,
    DataType.STRING: Operator.EQUAL,
}

OPERATOR_ALIASES: dict[str, Operator] = {
    "regexMatch": Operator.REGEX,
    "regexNotMatch": Operator.NOT_REGEX,
}


def resolve_operator(data_type: DataType, name: Any) -> Operator:
    """Look up a rule's operation name within the operators of *data_type*."""
    if name is None or name == "":
        return DEFAULT_OPERATION[data_type]

    operator = None
    if isinstance(name, str):
        operator = OPERATOR_ALIASES.get(name)
        if operator is None:
            try:
                operator = Operator(name)
            except ValueError:
                operator = None

    if operator is None or operator not in DATA_TYPE_OPERATORS[data_type]:
        raise UnknownOperatorError(f"Unknown operation: {to_text(name)} (data type '{data_type.value}')")
    return operator
