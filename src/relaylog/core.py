"""
Core logger construction.

A Logger wraps a silent structlog logger with three processors:

1. LevelFilter: drops entries below the configured level
2. add_timestamp: stamps the event with the emission time
3. HookRunner: builds the Entry and fires every interested hook

Output happens in the hooks (stdout/stderr stream sinks and the dispatch
hook), the structlog logger itself writes nowhere.
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any, Optional, TextIO

import structlog
from structlog.typing import EventDict, WrappedLogger

from .config import Config, Options
from .diagnostics import StderrProxy, get_logger
from .entry import Entry
from .errors import ConfigError, PanicError
from .formatters import LineFormatter
from .hooks import DispatchHook
from .sinks import StreamSink
from .types import ERROR_KEY, FIELDS_KEY, Hook, Level

diagnostics = get_logger("relaylog.core")

STDERR_LEVELS = frozenset({Level.PANIC, Level.FATAL, Level.ERROR, Level.WARN})
STDOUT_LEVELS = frozenset({Level.TRACE, Level.DEBUG, Level.INFO})


# =============================================================================
# Structlog Processors
# =============================================================================


class LevelFilter:
    """Drop events below the minimum level."""

    def __init__(self, level: Level):
        self.level = level

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        if Level.from_label(method_name) < self.level:
            raise structlog.DropEvent
        return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add the local emission time to the event."""
    event_dict["timestamp"] = datetime.now().astimezone()
    return event_dict


class HookRunner:
    """Final processor: fire the entry at every hook registered for its level.

    A hook error is reported on the diagnostics channel, the other hooks
    still run.
    """

    def __init__(self, hooks: Sequence[Hook]):
        self.hooks = tuple(hooks)

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        entry = Entry.from_event_dict(method_name, event_dict)
        for hook in self.hooks:
            if entry.level not in hook.levels():
                continue
            try:
                hook.fire(entry)
            except Exception as exc:
                diagnostics.error(
                    "hook_fire_failed",
                    hook=getattr(hook, "name", type(hook).__name__),
                    error=str(exc),
                )
        return entry.message


class _Terminal:
    """Wrapped logger at the end of the chain, writes nowhere."""

    def __init__(self, exit_func: Callable[[int], Any]):
        self.exit_func = exit_func

    def msg(self, message: str = "") -> None:
        pass

    trace = debug = info = warning = error = fatal = panic = msg


# =============================================================================
# Bound Logger
# =============================================================================


def _sprint(args: Sequence[Any]) -> str:
    return " ".join(str(a) for a in args)


class BoundLogger(structlog.BoundLoggerBase):
    """Leveled logging methods plus field and error binding.

    Positional arguments form the message, keyword arguments are merged into
    the entry's fields.
    """

    def _log(self, level: Level, args: Sequence[Any], kw: Mapping[str, Any]) -> Any:
        if kw:
            fields = {**self._current_fields(), **kw}
            return self._proxy_to_logger(level.label, _sprint(args), **{FIELDS_KEY: fields})
        return self._proxy_to_logger(level.label, _sprint(args))

    def _current_fields(self) -> dict[str, Any]:
        current = self._context.get(FIELDS_KEY)
        if isinstance(current, Mapping):
            return dict(current)
        return {}

    def trace(self, *args: Any, **kw: Any) -> None:
        self._log(Level.TRACE, args, kw)

    def debug(self, *args: Any, **kw: Any) -> None:
        self._log(Level.DEBUG, args, kw)

    def info(self, *args: Any, **kw: Any) -> None:
        self._log(Level.INFO, args, kw)

    def warn(self, *args: Any, **kw: Any) -> None:
        self._log(Level.WARN, args, kw)

    warning = warn

    def error(self, *args: Any, **kw: Any) -> None:
        self._log(Level.ERROR, args, kw)

    def fatal(self, *args: Any, **kw: Any) -> None:
        """Log at fatal level, then exit the process with status 1."""
        self._log(Level.FATAL, args, kw)
        self._logger.exit_func(1)

    def panic(self, *args: Any, **kw: Any) -> None:
        """Log at panic level, then raise PanicError."""
        message = _sprint(args)
        self._log(Level.PANIC, args, kw)
        raise PanicError(message)

    def with_field(self, key: str, value: Any) -> BoundLogger:
        """Bind one user field, rendered in the fields column."""
        return self.bind(**{FIELDS_KEY: {**self._current_fields(), key: value}})

    def with_fields(self, fields: Mapping[str, Any]) -> BoundLogger:
        return self.bind(**{FIELDS_KEY: {**self._current_fields(), **fields}})

    def with_error(self, err: Any) -> BoundLogger:
        """Attach an error, see relaylog.errors.to_error for what is understood."""
        return self.bind(**{ERROR_KEY: err})


# =============================================================================
# Logger
# =============================================================================


class Logger:
    """An owned logger instance.

    Args:
        config: Resolved configuration, see relaylog.config.Options.
        stdout: Stream for trace/debug/info lines, ``sys.stdout`` when None.
        stderr: Stream for warning and above, ``sys.stderr`` when None.
        hooks: Hooks fired after the stream sinks. Defaults to a
            DispatchHook built from the config.
        exit_func: Called with 1 after a fatal entry.
    """

    def __init__(
        self,
        config: Config,
        *,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        hooks: Optional[Sequence[Hook]] = None,
        exit_func: Callable[[int], Any] = sys.exit,
    ):
        if not config.service:
            raise ConfigError("service name cannot be empty")
        self.config = config
        self._stdout = stdout
        self._stderr = stderr
        self._exit_func = exit_func
        self._custom_hooks = tuple(hooks) if hooks is not None else None
        self.formatter = LineFormatter(config, colours=config.colours, timestamp_format=config.timestamp_format)

        if hooks is None:
            hooks = (DispatchHook.from_config(config),)
        self.hooks: tuple[Hook, ...] = (
            StreamSink(StderrProxy(stderr), levels=STDERR_LEVELS, formatter=self.formatter, name="stderr"),
            StreamSink(stdout, levels=STDOUT_LEVELS, formatter=self.formatter, name="stdout"),
            *hooks,
        )

        self._bound: BoundLogger = structlog.wrap_logger(
            _Terminal(exit_func),
            processors=[LevelFilter(config.level), add_timestamp, HookRunner(self.hooks)],
            wrapper_class=BoundLogger,
            context_class=dict,
            cache_logger_on_first_use=False,
        ).bind()

    def with_config(self, config: Config) -> Logger:
        """A new Logger for ``config`` with the same streams and explicit hooks."""
        return Logger(
            config,
            stdout=self._stdout,
            stderr=self._stderr,
            hooks=self._custom_hooks,
            exit_func=self._exit_func,
        )

    # Leveled methods

    def trace(self, *args: Any, **kw: Any) -> None:
        self._bound.trace(*args, **kw)

    def debug(self, *args: Any, **kw: Any) -> None:
        self._bound.debug(*args, **kw)

    def info(self, *args: Any, **kw: Any) -> None:
        self._bound.info(*args, **kw)

    def warn(self, *args: Any, **kw: Any) -> None:
        self._bound.warn(*args, **kw)

    warning = warn

    def error(self, *args: Any, **kw: Any) -> None:
        self._bound.error(*args, **kw)

    def fatal(self, *args: Any, **kw: Any) -> None:
        self._bound.fatal(*args, **kw)

    def panic(self, *args: Any, **kw: Any) -> None:
        self._bound.panic(*args, **kw)

    # Binding

    def with_field(self, key: str, value: Any) -> BoundLogger:
        return self._bound.with_field(key, value)

    def with_fields(self, fields: Mapping[str, Any]) -> BoundLogger:
        return self._bound.with_fields(fields)

    def with_error(self, err: Any) -> BoundLogger:
        return self._bound.with_error(err)

    def bind(self, **data: Any) -> BoundLogger:
        """Bind top-level entry data, e.g. the HTTP keys."""
        return self._bound.bind(**data)

    # Lifecycle

    def close(self, keep: Iterable[Hook] = ()) -> None:
        """Close every hook except those in ``keep``, draining queued sinks."""
        kept = {id(hook) for hook in keep}
        for hook in self.hooks:
            if id(hook) not in kept:
                hook.close()

    def __enter__(self) -> Logger:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


# =============================================================================
# Process-wide Default
# =============================================================================

_default: Optional[Logger] = None
_default_lock = threading.Lock()


def new(options: Options | Config, **kwargs: Any) -> Logger:
    """Build a Logger and install it as the process default.

    Keyword arguments are passed to Logger. The previous default, if any,
    is closed.
    """
    config = options.build() if isinstance(options, Options) else options
    logger = Logger(config, **kwargs)
    set_default(logger)
    return logger


def set_default(logger: Logger) -> None:
    global _default
    with _default_lock:
        previous, _default = _default, logger
    if previous is not None and previous is not logger:
        # Hooks handed on to the new logger stay open
        previous.close(keep=logger.hooks)


def get_default() -> Logger:
    if _default is None:
        raise RuntimeError("relaylog is not initialised, call relaylog.new() first")
    return _default


def reset_default() -> None:
    """Close and forget the process default (useful for testing)."""
    global _default
    with _default_lock:
        previous, _default = _default, None
    if previous is not None:
        previous.close()


def set_service(service: str) -> Logger:
    """Replace the default logger with one for another service name."""
    current = get_default()
    config = current.config.model_copy(update={"service": service})
    logger = current.with_config(config)
    set_default(logger)
    return logger


def trace(*args: Any, **kw: Any) -> None:
    get_default().trace(*args, **kw)


def debug(*args: Any, **kw: Any) -> None:
    get_default().debug(*args, **kw)


def info(*args: Any, **kw: Any) -> None:
    get_default().info(*args, **kw)


def warn(*args: Any, **kw: Any) -> None:
    get_default().warn(*args, **kw)


def error(*args: Any, **kw: Any) -> None:
    get_default().error(*args, **kw)


def fatal(*args: Any, **kw: Any) -> None:
    get_default().fatal(*args, **kw)


def panic(*args: Any, **kw: Any) -> None:
    get_default().panic(*args, **kw)


def with_field(key: str, value: Any) -> BoundLogger:
    return get_default().with_field(key, value)


def with_fields(fields: Mapping[str, Any]) -> BoundLogger:
    return get_default().with_fields(fields)


def with_error(err: Any) -> BoundLogger:
    return get_default().with_error(err)
