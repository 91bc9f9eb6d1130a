"""
Entry and Level unit tests.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from relaylog.entry import Entry
from relaylog.errors import StructuredError
from relaylog.types import Level


class TestLevel:
    """Level ordering and parsing"""

    def test_levels_are_ordered_by_severity(self) -> None:
        assert Level.TRACE < Level.DEBUG < Level.INFO < Level.WARN < Level.ERROR < Level.FATAL < Level.PANIC

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("trace", Level.TRACE),
            ("INFO", Level.INFO),
            ("warn", Level.WARN),
            ("warning", Level.WARN),
            (" error ", Level.ERROR),
            (6, Level.PANIC),
            (Level.FATAL, Level.FATAL),
        ],
    )
    def test_parse(self, value, expected) -> None:
        assert Level.parse(value) is expected

    def test_parse_unknown_label_raises(self) -> None:
        with pytest.raises(ValueError, match="not a valid log level"):
            Level.parse("loud")

    def test_warn_label_is_warning(self) -> None:
        assert Level.WARN.label == "warning"
        assert Level.from_label("warning") is Level.WARN


class TestEntryAccessors:
    """Typed views over entry data"""

    def test_is_http_requires_status_ip_and_url(self, make_entry) -> None:
        assert make_entry(status_code=200, client_ip="127.0.0.1", request_url="/").is_http()
        assert not make_entry(status_code=200, client_ip="127.0.0.1").is_http()
        assert not make_entry().is_http()

    def test_fields_returns_mapping(self, make_entry) -> None:
        entry = make_entry(fields={"user": 42})
        assert dict(entry.fields()) == {"user": 42}

    def test_fields_of_wrong_type_is_empty(self, make_entry) -> None:
        assert dict(make_entry(fields="not a mapping").fields()) == {}
        assert dict(make_entry().fields()) == {}

    def test_error_coerces_structured_error(self, make_entry) -> None:
        err = StructuredError(code="INTERNAL", message="message")
        entry = make_entry(error=err)
        assert entry.has_error()
        assert entry.error() is err

    def test_error_coerces_exception(self, make_entry) -> None:
        entry = make_entry(error=RuntimeError("boom"))
        assert entry.error().error_text() == "boom"

    def test_unresolvable_error_is_none(self, make_entry) -> None:
        entry = make_entry(error=12)
        assert entry.has_error()
        assert entry.error() is None

    def test_data_defaults_to_empty_read_only_mapping(self) -> None:
        first = Entry(level=Level.INFO, time=datetime.now().astimezone())
        second = Entry(level=Level.INFO, time=datetime.now().astimezone())

        assert dict(first.data) == {}
        assert dict(second.fields()) == {}
        with pytest.raises(TypeError):
            first.data["a"] = 1  # type: ignore[index]

    def test_data_is_read_only(self, make_entry) -> None:
        entry = make_entry(a=1)
        with pytest.raises(TypeError):
            entry.data["a"] = 2  # type: ignore[index]


class TestFromEventDict:
    """Building entries from structlog event dicts"""

    def test_event_and_timestamp_are_lifted_out_of_data(self) -> None:
        now = datetime.now().astimezone()
        entry = Entry.from_event_dict("error", {"event": "boom", "timestamp": now, "status_code": 500})

        assert entry.level is Level.ERROR
        assert entry.message == "boom"
        assert entry.time == now
        assert dict(entry.data) == {"status_code": 500}

    def test_missing_timestamp_defaults_to_now(self) -> None:
        before = datetime.now().astimezone()
        entry = Entry.from_event_dict("info", {})
        assert entry.time >= before
        assert entry.message == ""

    def test_to_dict(self, make_entry) -> None:
        entry = make_entry(Level.DEBUG, "hello", a=1)
        assert entry.to_dict() == {
            "level": "debug",
            "time": "2022-01-02T15:04:05.123000+00:00",
            "message": "hello",
            "data": {"a": 1},
        }
