"""
Shared types for relaylog.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .entry import Entry
    from .messages import FormatMessageArgs

Fields = dict[str, Any]

# Reserved data keys
FIELDS_KEY = "fields"
ERROR_KEY = "error"
MESSAGE_KEY = "message"
STATUS_CODE_KEY = "status_code"
CLIENT_IP_KEY = "client_ip"
REQUEST_METHOD_KEY = "request_method"
REQUEST_URL_KEY = "request_url"


class Level(IntEnum):
    """Log levels ordered by severity."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5
    PANIC = 6

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def from_label(cls, label: str) -> Level:
        return _BY_LABEL[label]

    @classmethod
    def parse(cls, value: str | int | Level) -> Level:
        """Parse a level from a label, member name or integer."""
        if isinstance(value, Level):
            return value
        if isinstance(value, int):
            return cls(value)
        key = value.strip().lower()
        if key in _BY_LABEL:
            return _BY_LABEL[key]
        if key == "warn":
            return cls.WARN
        raise ValueError(f"not a valid log level: {value!r}")


_LABELS = {
    Level.TRACE: "trace",
    Level.DEBUG: "debug",
    Level.INFO: "info",
    Level.WARN: "warning",
    Level.ERROR: "error",
    Level.FATAL: "fatal",
    Level.PANIC: "panic",
}
_BY_LABEL = {label: level for level, label in _LABELS.items()}

ALL_LEVELS: frozenset[Level] = frozenset(Level)

ReportFunc = Callable[["Entry"], bool]
FormatMessageFunc = Callable[["Entry", "FormatMessageArgs"], str]


def default_report(entry: Entry) -> bool:
    """Default ShouldReport predicate, every entry is reported."""
    return True


class Hook(Protocol):
    """Anything the logger fires entries at."""

    def fire(self, entry: Entry) -> None: ...

    def levels(self) -> frozenset[Level]: ...

    def close(self) -> None: ...
