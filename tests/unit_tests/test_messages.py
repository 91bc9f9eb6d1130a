"""
Notification message formatting tests.
"""

from __future__ import annotations

from relaylog.errors import StructuredError
from relaylog.messages import RIGHT_ARROW, FormatMessageArgs, default_format_message, get_message
from relaylog.types import Level

ARGS = FormatMessageArgs(service="api", version="1.2.0", prefix="relay")


class TestDefaultFormatMessage:
    """Multi-line chat message layout"""

    def test_plain_entry(self, make_entry) -> None:
        entry = make_entry(Level.INFO, "hello")
        assert default_format_message(entry, ARGS) == (
            "RELAY | api \U0001F4C8 v1.2.0\n"
            "\n"
            f"{RIGHT_ARROW} Level: INFO\n"
            f"{RIGHT_ARROW} Time: 2022-01-02T15:04:05.123000+00:00\n"
            f"{RIGHT_ARROW} Message: hello\n"
        )

    def test_error_entry(self, make_entry) -> None:
        err = StructuredError(code="INTERNAL", message="message", operation="op", err="error")
        entry = make_entry(Level.ERROR, error=err, user=42)

        message = default_format_message(entry, ARGS)

        assert "Error detected in api" in message
        assert f"{RIGHT_ARROW} Code: INTERNAL\n" in message
        assert f"{RIGHT_ARROW} Error Message: message\n" in message
        assert f"{RIGHT_ARROW} Operation: op\n" in message
        assert f"{RIGHT_ARROW} Error: error\n" in message
        assert "Fileline" not in message
        assert message.endswith("Log entries:\nuser: 42\n")

    def test_error_key_is_not_repeated_in_log_entries(self, make_entry) -> None:
        message = default_format_message(make_entry(Level.ERROR, error="boom"), ARGS)
        assert "Log entries" not in message
        assert f"{RIGHT_ARROW} Error: boom\n" in message

    def test_unresolvable_error_has_no_banner(self, make_entry) -> None:
        message = default_format_message(make_entry(Level.ERROR, "m", error=7), ARGS)
        assert "Error detected" not in message


class TestGetMessage:
    def test_default_when_no_override(self, make_entry) -> None:
        entry = make_entry(Level.INFO, "hello")
        assert get_message(entry, ARGS) == default_format_message(entry, ARGS)

    def test_override_wins(self, make_entry) -> None:
        entry = make_entry(Level.INFO, "hello")
        assert get_message(entry, ARGS, lambda e, a: f"{a.service}: {e.message}") == "api: hello"
