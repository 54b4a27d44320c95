# ==================================================
# ================  MODULE: errors  ================
# ==================================================
from __future__ import annotations

from enum import Enum
from typing import Any, Optional

__all__ = [
    "ERROR_MSG_SIZE",
    "ErrorCode",
    "format_error_message",
    "TensorConverterError",
    "UnsupportedTypeError",
    "ConversionError",
]

# Message buffer size, terminator included.
ERROR_MSG_SIZE: int = 256


# ====[ Error taxonomy ]====
class ErrorCode(Enum):
    """Failure categories of a conversion, each bound to its message template."""

    NONE = ""
    NULL_POINTER = "Input pointer is null"
    INVALID_DIMENSIONS = "Invalid dimension parameters"
    UNSUPPORTED_TYPE = "Unsupported data type"
    MEMORY_ALLOCATION = "Memory allocation failed"
    LAYOUT_CONVERSION_FAILED = "Layout conversion failed"
    DATA_COPY_FAILED = "Data copy failed"

    @property
    def template(self) -> str:
        return self.value


def format_error_message(
    code: ErrorCode,
    detail: Optional[str] = None,
    size: int = ERROR_MSG_SIZE,
) -> str:
    """
    Render `code`'s template (plus an optional detail) within `size` bytes.

    The buffer reserves one slot for the terminator, so at most `size - 1`
    characters are kept; longer text is truncated, never rejected.

    Parameters
    ----------
    code : ErrorCode
        Failure category.
    detail : str, optional
        Appended as ``"<template>: <detail>"``.
    size : int, default 256
        Buffer size including the terminator.

    Returns
    -------
    str
        Bounded message ("" when `size` < 1).
    """
    if size < 1:
        return ""
    text = code.template if detail is None else f"{code.template}: {detail}"
    return text[: size - 1]


# ====[ Exceptions ]====
class TensorConverterError(Exception):
    """Base class for errors raised by the converter helpers."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.NONE) -> None:
        super().__init__(message)
        self.code = code


class UnsupportedTypeError(TensorConverterError, ValueError):
    """Raised when an element-type tag has no known width."""

    def __init__(self, tag: Any) -> None:
        super().__init__(
            format_error_message(ErrorCode.UNSUPPORTED_TYPE, str(_tag_value(tag))),
            ErrorCode.UNSUPPORTED_TYPE,
        )
        self.tag = tag


class ConversionError(TensorConverterError):
    """Raised by the raising helpers when a conversion result is a failure."""


def _tag_value(tag: Any) -> Any:
    return getattr(tag, "value", tag)
