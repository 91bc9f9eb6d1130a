"""
Sink abstractions and concrete implementations.

A sink receives copies of log entries. The set of sink kinds is closed:

- stream: writes formatted lines to stdout/stderr (synchronous)
- chat: sends notifications through a chat transport (queued)
- document: persists entries to a document store (queued, serialized)
"""

from __future__ import annotations

import queue
import sys
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal, Optional, Protocol, TextIO

import orjson

from .diagnostics import get_logger
from .errors import ConfigError, SinkError
from .messages import FormatMessageArgs, get_message
from .types import ALL_LEVELS, ERROR_KEY, FormatMessageFunc, Level

if TYPE_CHECKING:
    from .entry import Entry
    from .formatters import LineFormatter
    from .notifiers import Notifier

logger = get_logger("relaylog.sinks")

LogFormat = Literal["console", "json"]

DEFAULT_QUEUE_SIZE = 1000

DAY = timedelta(days=1)
DEFAULT_EXPIRATION_LEVELS: Mapping[Level, timedelta] = {
    Level.TRACE: DAY,
    Level.DEBUG: DAY,
    Level.INFO: DAY * 7,
    Level.WARN: DAY * 7 * 4,
    Level.ERROR: DAY * 7 * 4,
    Level.FATAL: DAY * 7 * 4 * 6,
    Level.PANIC: DAY * 7 * 4 * 6,
}


def orjson_dumps(v: Any, *, default: Any = None) -> str:
    """Fast JSON serialization using orjson."""
    return orjson.dumps(
        v,
        default=default,
        option=orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC | orjson.OPT_NON_STR_KEYS,
    ).decode()


class SinkKind(str, Enum):
    STREAM = "stream"
    CHAT = "chat"
    DOCUMENT = "document"


# =============================================================================
# Sink Abstraction
# =============================================================================


class Sink(ABC):
    """Abstract base class for sinks."""

    name: str = "sink"
    kind: SinkKind

    @abstractmethod
    def fire(self, entry: Entry) -> None:
        """Accept an entry. Must return quickly, raises SinkError on refusal."""
        ...

    def levels(self) -> frozenset[Level]:
        return ALL_LEVELS

    def close(self) -> None:
        """Close the sink and release resources."""


class StreamSink(Sink):
    """Writes formatted lines to a text stream.

    Args:
        stream: Output stream, None resolves ``sys.stdout`` at write time.
        levels: Levels this sink writes.
        formatter: Line formatter used for the console format.
        fmt: "console" (formatted line) or "json"
    """

    kind = SinkKind.STREAM

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        *,
        levels: Iterable[Level] = ALL_LEVELS,
        formatter: LineFormatter,
        fmt: LogFormat = "console",
        name: str = "stream",
    ):
        self._stream = stream
        self._levels = frozenset(levels)
        self._formatter = formatter
        self._fmt = fmt
        self.name = name

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    def levels(self) -> frozenset[Level]:
        return self._levels

    def fire(self, entry: Entry) -> None:
        if self._fmt == "json":
            line = orjson_dumps(entry.to_dict(), default=str) + "\n"
        else:
            line = self._formatter.format(entry).decode("utf-8")

        stream = self.stream
        try:
            stream.write(line)
            stream.flush()
        except (OSError, ValueError) as exc:
            raise SinkError(f"error writing entry to {self.name}: {exc}", sink=self.name) from exc


class QueuedSink(Sink):
    """A sink that hands entries to a dedicated worker thread.

    ``fire`` never blocks: when the queue is full the entry is dropped and
    SinkError is raised so the caller can report it. Exceptions raised by
    ``send`` are reported on the diagnostics channel and otherwise dropped.
    When a lock is given it is held around every ``send``.
    """

    def __init__(self, *, name: str, queue_size: int = DEFAULT_QUEUE_SIZE, lock: Optional[threading.Lock] = None):
        self.name = name
        self._lock = lock
        self._queue: queue.Queue[Optional[Entry]] = queue.Queue(maxsize=queue_size)
        self._closed = False
        self._state_lock = threading.Lock()
        self._worker = threading.Thread(target=self._run, name=f"relaylog-{name}", daemon=True)
        self._worker.start()

    @abstractmethod
    def send(self, entry: Entry) -> None:
        """Deliver one entry through the transport. Runs on the worker thread."""
        ...

    def fire(self, entry: Entry) -> None:
        # Nothing may be queued behind the close sentinel
        with self._state_lock:
            if self._closed:
                raise SinkError(f"{self.name} sink is closed", sink=self.name)
            try:
                self._queue.put_nowait(entry)
            except queue.Full:
                raise SinkError(f"{self.name} queue is full, entry dropped", sink=self.name) from None

    def _run(self) -> None:
        while True:
            entry = self._queue.get()
            try:
                if entry is None:
                    return
                self._deliver(entry)
            finally:
                self._queue.task_done()

    def _deliver(self, entry: Entry) -> None:
        try:
            if self._lock is None:
                self.send(entry)
            else:
                with self._lock:
                    self.send(entry)
        except Exception as exc:
            logger.warning("sink_send_failed", sink=self.name, error=str(exc))

    def flush(self) -> None:
        """Block until every queued entry has been processed."""
        self._queue.join()

    def close(self, timeout: float = 5.0) -> None:
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._queue.put(None, timeout=timeout)
        except queue.Full:
            logger.warning("sink_close_timeout", sink=self.name, pending=self._queue.qsize())
            return
        self._worker.join(timeout)


class ChatSink(QueuedSink):
    """Sends entries as notifications to a chat channel or thread."""

    kind = SinkKind.CHAT

    def __init__(
        self,
        name: str,
        notifier: Notifier,
        destination: str,
        *,
        args: FormatMessageArgs,
        format_message: Optional[FormatMessageFunc] = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ):
        self._notifier = notifier
        self._destination = destination
        self._args = args
        self._format_message = format_message
        super().__init__(name=name, queue_size=queue_size)

    def send(self, entry: Entry) -> None:
        message = get_message(entry, self._args, self._format_message)
        self._notifier.notify(self._destination, message)

    def close(self, timeout: float = 5.0) -> None:
        super().close(timeout)
        close = getattr(self._notifier, "close", None)
        if callable(close):
            close()


class DocumentCollection(Protocol):
    """The part of a pymongo ``Collection`` the document sink uses."""

    def create_index(self, keys: Any, **kwargs: Any) -> Any: ...

    def insert_one(self, document: Mapping[str, Any], **kwargs: Any) -> Any: ...


class DocumentStoreSink(QueuedSink):
    """Persists entries to a document store collection.

    Documents expire per level: each carries ``expire_at`` and the collection
    gets a TTL index on that field.
    """

    kind = SinkKind.DOCUMENT
    EXPIRE_FIELD = "expire_at"

    def __init__(
        self,
        collection: DocumentCollection,
        *,
        expiration_levels: Optional[Mapping[Level, timedelta]] = None,
        lock: Optional[threading.Lock] = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        name: str = "document_store",
    ):
        self._collection = collection
        self._expiration = dict(DEFAULT_EXPIRATION_LEVELS)
        if expiration_levels:
            self._expiration.update(expiration_levels)
        super().__init__(name=name, queue_size=queue_size, lock=lock)

    @classmethod
    def create(
        cls,
        collection: Optional[DocumentCollection],
        *,
        expiration_levels: Optional[Mapping[Level, timedelta]] = None,
        lock: Optional[threading.Lock] = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> DocumentStoreSink:
        """Prepare the collection and start the sink. Index failures propagate."""
        if collection is None:
            raise ConfigError("document store collection cannot be nil")
        collection.create_index(cls.EXPIRE_FIELD, expireAfterSeconds=0)
        return cls(collection, expiration_levels=expiration_levels, lock=lock, queue_size=queue_size)

    def to_document(self, entry: Entry) -> dict[str, Any]:
        data = {k: v for k, v in entry.data.items() if k != ERROR_KEY}
        err = entry.error()
        document: dict[str, Any] = {
            "level": entry.level.label,
            "time": entry.time,
            "message": entry.message,
            "data": orjson.loads(orjson_dumps(data, default=str)),
            "error": err.to_dict() if err is not None else None,
        }
        expiry = self._expiration.get(entry.level)
        if expiry is not None:
            document[self.EXPIRE_FIELD] = entry.time + expiry
        return document

    def send(self, entry: Entry) -> None:
        self._collection.insert_one(self.to_document(entry))
