"""
Side channel for relaylog's own diagnostics.

Sink and transport failures are reported here rather than through the relaylog
Logger that produced them, otherwise a failing sink would feed its own failure
back into itself. Events go through structlog's global processors and are
written to stderr so they never mix into application lines on stdout.
"""

from __future__ import annotations

import sys
from typing import Any, Optional, TextIO

import structlog


class StderrProxy:
    """Resolves sys.stderr at write time unless a stream was given."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    def write(self, s: str) -> int:
        return (self._stream or sys.stderr).write(s)

    def flush(self) -> None:
        (self._stream or sys.stderr).flush()


def get_logger(name: Optional[str] = None) -> Any:
    """Get the diagnostics logger."""
    return structlog.wrap_logger(structlog.PrintLogger(StderrProxy()), _name=name or "relaylog")
