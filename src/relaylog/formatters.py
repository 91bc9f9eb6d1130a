"""
Line formatter and color utilities.

Renders an Entry into a single column-aligned line:

    [PREFIX] <time> | <status> | [LEVEL] | <ip> |  <METHOD>   "<url>" | [msg] <message> | key: value
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from .types import (
    CLIENT_IP_KEY,
    MESSAGE_KEY,
    REQUEST_METHOD_KEY,
    REQUEST_URL_KEY,
    STATUS_CODE_KEY,
)

if TYPE_CHECKING:
    from .config import Config
    from .entry import Entry

# =============================================================================
# ANSI Styles
# =============================================================================

RESET = "\x1b[0m"

STYLES = {
    # Status column
    "status_ok": "\x1b[97;42;1m",  # White on green
    "status_error": "\x1b[97;41;1m",  # White on red
    "status_default": "\x1b[97;40;1m",  # White on black
    # Levels
    "trace": "\x1b[90;1m",  # Gray
    "debug": "\x1b[90;1m",
    "info": "\x1b[34;1m",  # Blue
    "warning": "\x1b[33;1m",  # Yellow
    "error": "\x1b[31;1m",  # Red
    "fatal": "\x1b[31;1m",
    "panic": "\x1b[31;1m",
    # Components
    "method": "\x1b[97;44;1m",  # White on blue
    "error_label": "\x1b[31m",
}


def colorize(text: str, style: str) -> str:
    """Apply an ANSI style to text."""
    return f"{STYLES.get(style, '')}{text}{RESET}"


def stamp_milli(t: datetime) -> str:
    """Compact millisecond stamp, e.g. ``Jan  2 15:04:05.000``."""
    return f"{t:%b} {t.day:>2} {t:%H:%M:%S}.{t.microsecond // 1000:03d}"


# =============================================================================
# Line Formatter
# =============================================================================


class LineFormatter:
    """Renders entries as printable, optionally colorized lines.

    Args:
        config: Resolved logger configuration (prefix and default status are used).
        colours: Emit ANSI escapes when True.
        timestamp_format: strftime format, None selects the millisecond stamp.
    """

    BAD_REQUEST = 400

    def __init__(self, config: Config, *, colours: bool = True, timestamp_format: Optional[str] = None):
        self._prefix = config.prefix.upper()
        self._default_status = config.default_status.upper()
        self.colours = colours
        self.timestamp_format = timestamp_format

    def _paint(self, text: str, style: str) -> str:
        if not self.colours:
            return text
        return colorize(text, style)

    def format_time(self, t: datetime) -> str:
        if not self.timestamp_format:
            return stamp_milli(t)
        return t.strftime(self.timestamp_format)

    def format(self, entry: Entry) -> bytes:
        """Format an entry into a newline terminated line."""
        parts = [f"[{self._prefix}] ", self.format_time(entry.time)]
        parts.append(self._status(entry))
        parts.append(self._level(entry))
        parts.append(self._ip(entry))
        parts.append(self._method(entry))
        parts.append(self._url(entry))
        parts.append(self._message(entry))
        parts.append(self._error(entry))
        parts.append(self._fields(entry))

        line = "".join(parts)
        line = line.removesuffix("|")
        line = line.removesuffix("|")
        line = line.removesuffix(" ")
        line = line.replace("||", "")
        return (line + "\n").encode("utf-8")

    def _status(self, entry: Entry) -> str:
        if STATUS_CODE_KEY not in entry.data:
            return f" | {self._paint(self._default_status, 'status_default')} | "

        status = entry.data[STATUS_CODE_KEY]
        if status is None or status == "":
            return " |  | "
        style = "status_error"
        if isinstance(status, int) and not isinstance(status, bool) and status < self.BAD_REQUEST:
            style = "status_ok"
        return f" | {self._paint(str(status), style)} | "

    def _level(self, entry: Entry) -> str:
        label = entry.level.label.upper()
        text = f"[{label}]"
        # Pad four letter levels so INFO lines up with DEBUG/ERROR/PANIC
        if len(label) == 4:
            text += " "
        return self._paint(text, entry.level.label)

    @staticmethod
    def _ip(entry: Entry) -> str:
        ip = entry.data.get(CLIENT_IP_KEY)
        if isinstance(ip, str):
            return f" | {ip} | "
        return " "

    def _method(self, entry: Entry) -> str:
        method = entry.data.get(REQUEST_METHOD_KEY)
        if not isinstance(method, str):
            return ""
        return self._paint(f"  {method}   ", "method")

    @staticmethod
    def _url(entry: Entry) -> str:
        url = entry.data.get(REQUEST_URL_KEY)
        if not isinstance(url, str):
            return ""
        return f' "{url}" '

    @staticmethod
    def _message(entry: Entry) -> str:
        if entry.error() is not None:
            return ""
        msg = entry.data.get(MESSAGE_KEY)
        if isinstance(msg, str) and msg:
            return f"| [msg] {msg} |"
        if entry.message:
            return f"| [msg] {entry.message} |"
        return ""

    def _error(self, entry: Entry) -> str:
        err = entry.error()
        if err is None:
            return ""

        parts = ["|"]
        for label, value in (
            ("code", err.code),
            ("msg", err.message),
            ("op", err.operation),
            ("error", err.error_text()),
        ):
            if value:
                parts.append(self._paint(f" [{label}] ", "error_label"))
                parts.append(value)
        return "".join(parts)

    @staticmethod
    def _fields(entry: Entry) -> str:
        fields = entry.fields()
        if not fields:
            return ""
        return "| " + "".join(f"{k}: {v} " for k, v in fields.items())


__all__ = ["LineFormatter", "colorize", "stamp_milli"]
