"""
Options builder, Config and environment settings tests.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import SecretStr, ValidationError

from relaylog.config import DEFAULT_PREFIX, DEFAULT_STATUS, Config, Options, RelaySettings
from relaylog.errors import ConfigError
from relaylog.sinks import DEFAULT_EXPIRATION_LEVELS
from relaylog.types import Level


class TestValidation:
    """build() validation order and messages"""

    def test_service_required(self) -> None:
        with pytest.raises(ConfigError, match="service name cannot be empty"):
            Options().build()

    def test_empty_service(self) -> None:
        with pytest.raises(ConfigError, match="service name cannot be empty"):
            Options().service("").with_workplace_notifier("t", "").build()

    @pytest.mark.parametrize(
        "configure, message",
        [
            (lambda o: o.with_workplace_notifier("t", ""), "workplace thread cannot be nil"),
            (lambda o: o.with_workplace_notifier("", "thread"), "workplace token cannot be nil"),
            (lambda o: o.with_slack_notifier("t", ""), "slack channel cannot be nil"),
            (lambda o: o.with_slack_notifier("", "C0123"), "slack token cannot be nil"),
        ],
    )
    def test_sink_pairs(self, configure, message) -> None:
        with pytest.raises(ConfigError, match=message):
            configure(Options().service("x")).build()

    def test_workplace_checked_before_slack(self) -> None:
        opts = Options().service("x").with_slack_notifier("t", "").with_workplace_notifier("", "thread")
        with pytest.raises(ConfigError, match="workplace token cannot be nil"):
            opts.build()

    def test_config_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            Options().build()


class TestDefaults:
    """Values applied by build()"""

    def test_defaults(self) -> None:
        config = Options().service("api").build()

        assert config.prefix == DEFAULT_PREFIX
        assert config.default_status == DEFAULT_STATUS
        assert config.timestamp_format == "%Y-%m-%d %H:%M:%S"
        assert config.level is Level.TRACE
        assert config.colours is True
        assert not config.workplace.enabled
        assert not config.slack.enabled
        assert not config.document_store.enabled

    def test_empty_prefix_falls_back_to_default(self) -> None:
        assert Options().service("api").prefix("").build().prefix == DEFAULT_PREFIX

    def test_none_timestamp_format_is_kept(self) -> None:
        assert Options().service("api").timestamp_format(None).build().timestamp_format is None

    def test_level_accepts_labels(self) -> None:
        assert Options().service("api").level("warn").build().level is Level.WARN

    def test_invalid_level(self) -> None:
        with pytest.raises(ValueError):
            Options().level("shout")

    def test_invalid_queue_size(self) -> None:
        with pytest.raises(ValidationError):
            Options().service("api").queue_size(0).build()


class TestSinkOptions:
    def test_slack_enabled(self) -> None:
        def only_errors(entry):
            return entry.level >= Level.ERROR

        config = Options().service("api").with_slack_notifier("xoxb", "C0123", should_report=only_errors).build()

        assert config.slack.enabled
        assert config.slack.token.get_secret_value() == "xoxb"
        assert config.slack.should_report is only_errors
        assert "xoxb" not in repr(config)

    def test_document_store_expiration_merges_defaults(self) -> None:
        collection = object()
        config = (
            Options()
            .service("api")
            .with_document_store(collection, expiration_levels={Level.INFO: timedelta(hours=1)})
            .build()
        )

        levels = config.document_store.expiration_levels
        assert config.document_store.collection is collection
        assert levels[Level.INFO] == timedelta(hours=1)
        assert levels[Level.PANIC] == DEFAULT_EXPIRATION_LEVELS[Level.PANIC]

    def test_config_is_frozen(self) -> None:
        config = Options().service("api").build()
        with pytest.raises(ValidationError):
            config.service = "other"  # type: ignore[misc]

    def test_config_direct_construction(self) -> None:
        assert Config(service="api").prefix == DEFAULT_PREFIX


class TestSettings:
    """Environment settings"""

    def test_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("RELAYLOG_SERVICE", "billing")
        monkeypatch.setenv("RELAYLOG_VERSION", "2.0.0")
        monkeypatch.setenv("RELAYLOG_LEVEL", "error")
        monkeypatch.setenv("RELAYLOG_COLOURS", "false")
        monkeypatch.setenv("RELAYLOG_SLACK_TOKEN", "xoxb")
        monkeypatch.setenv("RELAYLOG_SLACK_CHANNEL", "C0123")

        config = Options.from_settings(RelaySettings(_env_file=None)).build()

        assert config.service == "billing"
        assert config.version == "2.0.0"
        assert config.level is Level.ERROR
        assert config.colours is False
        assert config.slack.enabled
        assert not config.workplace.enabled

    def test_half_configured_sink_fails_validation(self) -> None:
        settings = RelaySettings(_env_file=None, service="api", workplace_token=SecretStr("wp"))
        with pytest.raises(ConfigError, match="workplace thread cannot be nil"):
            Options.from_settings(settings).build()

    def test_missing_service(self, monkeypatch) -> None:
        monkeypatch.delenv("RELAYLOG_SERVICE", raising=False)
        with pytest.raises(ConfigError, match="service name cannot be empty"):
            Options.from_settings(RelaySettings(_env_file=None)).build()
