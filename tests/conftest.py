from __future__ import annotations

import io
import threading
import typing as t
from datetime import datetime, timezone

import pytest

import relaylog.core as core
from relaylog.config import Options
from relaylog.entry import Entry
from relaylog.types import Level

FIXED_TIME = datetime(2022, 1, 2, 15, 4, 5, 123000, tzinfo=timezone.utc)


class FakeCollection:
    """Records what a document store sink does to its collection."""

    def __init__(self, fail_index: bool = False, fail_insert: bool = False):
        self.fail_index = fail_index
        self.fail_insert = fail_insert
        self.indexes: list[tuple[t.Any, dict]] = []
        self.documents: list[dict] = []
        self.inserted = threading.Event()

    def create_index(self, keys, **kwargs):
        if self.fail_index:
            raise RuntimeError("index failed")
        self.indexes.append((keys, kwargs))
        return "expire_at_1"

    def insert_one(self, document, **kwargs):
        if self.fail_insert:
            raise RuntimeError("insert failed")
        self.documents.append(document)
        self.inserted.set()


class RecordingNotifier:
    """A chat transport that keeps every message it is asked to send."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str]] = []
        self.closed = False

    def notify(self, destination: str, message: str) -> None:
        if self.fail:
            raise RuntimeError("notify failed")
        self.sent.append((destination, message))

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_entry() -> t.Callable[..., Entry]:
    def _make(level: Level = Level.INFO, msg: str = "", **data: t.Any) -> Entry:
        return Entry(level=level, time=FIXED_TIME, message=msg, data=data)

    return _make


@pytest.fixture
def config():
    return Options().service("test").version("v0.1.0").prefix("test").default_status("test").colours(False).build()


@pytest.fixture
def streams() -> tuple[io.StringIO, io.StringIO]:
    return io.StringIO(), io.StringIO()


@pytest.fixture(autouse=True)
def reset_default_logger():
    """Each test starts without a process default logger."""
    yield
    core.reset_default()


@pytest.fixture
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
