"""
relaylog error hierarchy and the structured error payload.

Two orthogonal families live here:

- ``RelayError`` and its subclasses are control flow: configuration failures,
  sinks refusing an entry, transport failures and panics.
- ``StructuredError`` is payload: the error value callers attach to an entry
  via ``with_error``. It carries a code, a human message, the operation that
  failed, the underlying error and the file/line it was created at.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from typing import Any, Optional


# =============================================================================
# Control Flow Errors
# =============================================================================


class RelayError(Exception):
    """Base class for all relaylog errors."""


class ConfigError(RelayError, ValueError):
    """Raised when a configuration is incomplete or inconsistent.

    Always raised at setup time, before any entry is logged.
    """


class SinkError(RelayError):
    """Raised by a sink that could not accept an entry."""

    def __init__(self, message: str, *, sink: str = "") -> None:
        super().__init__(message)
        self.sink = sink


class NotifyError(SinkError):
    """Raised by a chat transport when a notification could not be delivered."""


class PanicError(RelayError):
    """Raised after a panic level entry has been logged."""


# =============================================================================
# Structured Error Payload
# =============================================================================

INTERNAL = "INTERNAL"
INVALID = "INVALID"
NOTFOUND = "NOTFOUND"
CONFLICT = "CONFLICT"
TEMPLATE = "TEMPLATE"
MAXIMUM_ATTEMPTS = "MAXIMUM_ATTEMPTS"
EXPIRED = "EXPIRED"


class StructuredError(Exception):
    """An error with a code, message, operation and underlying cause.

    Any field may be empty. Renderers skip empty fields.
    """

    def __init__(
        self,
        *,
        code: str = "",
        message: str = "",
        operation: str = "",
        err: Optional[BaseException | str] = None,
        file_line: str = "",
    ) -> None:
        super().__init__(message or code)
        self.code = code
        self.message = message
        self.operation = operation
        self.err = err
        self.file_line = file_line

    def error_text(self) -> str:
        """Text of the underlying error, empty when there is none."""
        if self.err is None:
            return ""
        return str(self.err)

    def to_dict(self) -> dict[str, str]:
        return {
            "code": self.code,
            "message": self.message,
            "operation": self.operation,
            "err": self.error_text(),
            "file_line": self.file_line,
        }

    def __str__(self) -> str:
        parts = []
        if self.file_line:
            parts.append(self.file_line)
        if self.code:
            parts.append(f"<{self.code}>")
        if self.operation:
            parts.append(f"{self.operation}:")
        if self.message:
            parts.append(self.message)
        text = self.error_text()
        if text:
            parts.append(text)
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"StructuredError(code={self.code!r}, message={self.message!r}, "
            f"operation={self.operation!r}, err={self.err!r})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StructuredError):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = Exception.__hash__


def _caller_file_line(depth: int = 2) -> str:
    frame = sys._getframe(depth)
    return f"{frame.f_code.co_filename}:{frame.f_lineno}"


def _new(code: str, err: Optional[BaseException | str], message: str, operation: str) -> StructuredError:
    return StructuredError(
        code=code,
        message=message,
        operation=operation,
        err=err,
        file_line=_caller_file_line(3),
    )


def new_internal(err: Optional[BaseException | str], message: str, operation: str) -> StructuredError:
    """Unexpected failure inside the system, the kind worth paging someone about."""
    return _new(INTERNAL, err, message, operation)


def new_invalid(err: Optional[BaseException | str], message: str, operation: str) -> StructuredError:
    return _new(INVALID, err, message, operation)


def new_not_found(err: Optional[BaseException | str], message: str, operation: str) -> StructuredError:
    return _new(NOTFOUND, err, message, operation)


def new_conflict(err: Optional[BaseException | str], message: str, operation: str) -> StructuredError:
    return _new(CONFLICT, err, message, operation)


def new_expired(err: Optional[BaseException | str], message: str, operation: str) -> StructuredError:
    return _new(EXPIRED, err, message, operation)


_MAPPING_ALIASES = {
    "code": ("code",),
    "message": ("message", "msg"),
    "operation": ("operation", "op"),
    "err": ("err", "error"),
    "file_line": ("file_line", "fileline"),
}


def _from_mapping(value: Mapping[Any, Any]) -> Optional[StructuredError]:
    kwargs: dict[str, Any] = {}
    for field, aliases in _MAPPING_ALIASES.items():
        for alias in aliases:
            if alias in value and value[alias] is not None:
                kwargs[field] = value[alias] if field == "err" else str(value[alias])
                break
    if not kwargs:
        return None
    return StructuredError(**kwargs)


def to_error(value: Any) -> Optional[StructuredError]:
    """Best-effort coercion of an attached error value.

    Returns None when the value cannot be interpreted as an error.
    """
    if value is None:
        return None
    if isinstance(value, StructuredError):
        return value
    if isinstance(value, BaseException):
        return StructuredError(err=value)
    if isinstance(value, str):
        return StructuredError(err=value) if value else None
    if isinstance(value, Mapping):
        return _from_mapping(value)
    return None
