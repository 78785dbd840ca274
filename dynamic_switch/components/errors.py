"""Errors raised while routing items through the dynamic switch."""

from __future__ import annotations


class SwitchError(Exception):
    """Base class for routing errors scoped to a single item."""

    code = "switch_error"

    def __init__(self, message: str, item_index: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.item_index = item_index


class InvalidDateTimeError(SwitchError):
    """Raised when a date-time value cannot be turned into an epoch timestamp."""

    code = "invalid_date_time"

    def __init__(self, raw: str, item_index: int | None = None) -> None:
        super().__init__(f'Invalid DateTime value: "{raw}"', item_index)
        self.raw = raw


class OutputIndexOutOfRangeError(SwitchError):
    code = "output_out_of_range"

    def __init__(self, index: str, count: int, item_index: int | None = None) -> None:
        where = f" for item {item_index}" if item_index is not None else ""
        super().__init__(
            f"Output index {index} is out of range{where}. Must be between 0 and {count - 1}.",
            item_index,
        )
        self.index = index
        self.count = count


class UnknownOperatorError(SwitchError):
    code = "unknown_operator"


class InvalidParameterError(SwitchError):
    """Raised when a parameter holds a value outside its allowed set."""

    code = "invalid_parameter"
