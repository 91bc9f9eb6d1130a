"""
relaylog: structured logging with chat and document store relays.

Every entry is written as a column-aligned line (stdout below warning,
stderr from warning up) and relayed to the configured sinks:
- Workplace threads and Slack channels (queued notifications)
- a document store collection with per level expiry

Library: structlog for the logger pipeline, httpx for chat transports,
pydantic for configuration.

Usage:
    import relaylog
    from relaylog.config import Options

    relaylog.new(Options().service("api").version("v1.0.0"))
    relaylog.with_field("user", 42).info("signed in")
"""

from .config import Config, Options, RelaySettings
from .core import (
    BoundLogger,
    Logger,
    debug,
    error,
    fatal,
    get_default,
    info,
    new,
    panic,
    set_default,
    set_service,
    trace,
    warn,
    with_error,
    with_field,
    with_fields,
)
from .entry import Entry
from .errors import ConfigError, NotifyError, PanicError, RelayError, SinkError, StructuredError
from .hooks import DispatchHook
from .types import Level

__all__ = [
    "BoundLogger",
    "Config",
    "ConfigError",
    "DispatchHook",
    "Entry",
    "Level",
    "Logger",
    "NotifyError",
    "Options",
    "PanicError",
    "RelayError",
    "RelaySettings",
    "SinkError",
    "StructuredError",
    "debug",
    "error",
    "fatal",
    "get_default",
    "info",
    "new",
    "panic",
    "set_default",
    "set_service",
    "trace",
    "warn",
    "with_error",
    "with_field",
    "with_fields",
]
