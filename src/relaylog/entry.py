"""
The canonical representation of one log event.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Optional

from structlog.typing import EventDict

from .errors import StructuredError, to_error
from .types import (
    CLIENT_IP_KEY,
    ERROR_KEY,
    FIELDS_KEY,
    REQUEST_URL_KEY,
    STATUS_CODE_KEY,
    Level,
)

_EMPTY: Mapping[str, Any] = MappingProxyType({})

# Keys structlog and our processors own, never part of entry data
_EVENT_KEY = "event"
_TIMESTAMP_KEY = "timestamp"


@dataclass(frozen=True)
class Entry:
    """One emitted log event.

    Entries are built once per emission and never mutated, so they are shared
    freely between the formatter, stream sinks and sink worker threads.
    """

    level: Level
    time: datetime
    message: str = ""
    data: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)

    def __post_init__(self) -> None:
        if not isinstance(self.data, MappingProxyType):
            object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    @classmethod
    def from_event_dict(cls, method_name: str, event_dict: EventDict) -> Entry:
        """Build an entry from a structlog event dict."""
        data = {k: v for k, v in event_dict.items() if k not in (_EVENT_KEY, _TIMESTAMP_KEY)}
        timestamp = event_dict.get(_TIMESTAMP_KEY)
        if not isinstance(timestamp, datetime):
            timestamp = datetime.now().astimezone()
        message = event_dict.get(_EVENT_KEY)
        return cls(
            level=Level.from_label(method_name),
            time=timestamp,
            message="" if message is None else str(message),
            data=data,
        )

    def is_http(self) -> bool:
        """True if the entry carries HTTP request information."""
        return STATUS_CODE_KEY in self.data and CLIENT_IP_KEY in self.data and REQUEST_URL_KEY in self.data

    def fields(self) -> Mapping[str, Any]:
        """User supplied fields, empty if absent or not a mapping."""
        value = self.data.get(FIELDS_KEY)
        if isinstance(value, Mapping):
            return value
        return _EMPTY

    def has_error(self) -> bool:
        return self.data.get(ERROR_KEY) is not None

    def error(self) -> Optional[StructuredError]:
        """The attached error coerced to a StructuredError, if possible."""
        return to_error(self.data.get(ERROR_KEY))

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level.label,
            "time": self.time.isoformat(),
            "message": self.message,
            "data": dict(self.data),
        }
