"""
Outbound notification messages for chat sinks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .types import ERROR_KEY, FormatMessageFunc

if TYPE_CHECKING:
    from .entry import Entry

CHART_INCREASING = "\U0001F4C8"
MELTING_FACE = "\U0001FAE0"
RIGHT_ARROW = "➡️"


@dataclass(frozen=True)
class FormatMessageArgs:
    """Descriptive values handed to message formatters."""

    service: str = ""
    version: str = ""
    prefix: str = ""


def default_format_message(entry: Entry, args: FormatMessageArgs) -> str:
    """Render an entry as a multi-line notification message."""
    lines = [f"{args.prefix.upper()} | {args.service} {CHART_INCREASING} v{args.version}"]

    err = entry.error()
    if err is not None:
        lines.append(
            f"{MELTING_FACE} Error detected in {args.service}, please see the information below for more details."
        )
    lines.append("")

    lines.append(f"{RIGHT_ARROW} Level: {entry.level.label.upper()}")
    lines.append(f"{RIGHT_ARROW} Time: {entry.time.isoformat()}")
    if entry.message:
        lines.append(f"{RIGHT_ARROW} Message: {entry.message}")

    if err is not None:
        details = [
            ("Code", err.code),
            ("Error Message", err.message),
            ("Operation", err.operation),
            ("Error", err.error_text()),
            ("Fileline", err.file_line),
        ]
        written = [f"{RIGHT_ARROW} {label}: {value}" for label, value in details if value]
        if written:
            lines.extend(written)
            lines.append("")

    data = [(k, v) for k, v in entry.data.items() if k != ERROR_KEY]
    if data:
        lines.append("Log entries:")
        lines.extend(f"{k}: {v}" for k, v in data)

    return "\n".join(lines) + "\n"


def get_message(entry: Entry, args: FormatMessageArgs, fmt: Optional[FormatMessageFunc] = None) -> str:
    """Resolve the outbound message, preferring a configured override."""
    if fmt is None:
        return default_format_message(entry, args)
    return fmt(entry, args)
