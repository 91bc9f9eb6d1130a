"""
Logger configuration and its builder.

``Config`` is immutable. ``Options`` collects values into a builder-local
draft and ``build()`` validates it once, in a fixed order, before handing out
a Config.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import timedelta
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from ..errors import ConfigError
from ..sinks import DEFAULT_EXPIRATION_LEVELS, DEFAULT_QUEUE_SIZE
from ..types import Level, default_report
from .settings import RelaySettings

DEFAULT_PREFIX = "RELAYLOG"
DEFAULT_STATUS = "LOG"
DEFAULT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_NOTIFY_TIMEOUT = 10.0


class _SinkConfig(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    should_report: Callable[..., bool] = default_report


class WorkplaceConfig(_SinkConfig):
    """Workplace thread notifications."""

    token: SecretStr = SecretStr("")
    thread: str = ""
    format_message: Optional[Callable[..., str]] = None

    @property
    def enabled(self) -> bool:
        return bool(self.token.get_secret_value()) and bool(self.thread)


class SlackConfig(_SinkConfig):
    """Slack channel notifications."""

    token: SecretStr = SecretStr("")
    channel: str = ""
    format_message: Optional[Callable[..., str]] = None

    @property
    def enabled(self) -> bool:
        return bool(self.token.get_secret_value()) and bool(self.channel)


class DocumentStoreConfig(_SinkConfig):
    """Document store persistence, per level expiration is passed through."""

    collection: Any = None
    expiration_levels: dict[Level, timedelta] = Field(default_factory=lambda: dict(DEFAULT_EXPIRATION_LEVELS))

    @property
    def enabled(self) -> bool:
        return self.collection is not None


class Config(BaseModel):
    """Resolved, immutable logger configuration."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    service: str
    version: str = ""
    prefix: str = DEFAULT_PREFIX
    default_status: str = DEFAULT_STATUS
    timestamp_format: Optional[str] = DEFAULT_TIMESTAMP_FORMAT
    colours: bool = True
    level: Level = Level.TRACE
    queue_size: int = Field(default=DEFAULT_QUEUE_SIZE, ge=1)
    notify_timeout: float = Field(default=DEFAULT_NOTIFY_TIMEOUT, gt=0)

    workplace: WorkplaceConfig = Field(default_factory=WorkplaceConfig)
    slack: SlackConfig = Field(default_factory=SlackConfig)
    document_store: DocumentStoreConfig = Field(default_factory=DocumentStoreConfig)


def _check_pair(sink: str, token: str, destination: str, destination_name: str) -> None:
    if token and not destination:
        raise ConfigError(f"{sink} {destination_name} cannot be nil")
    if destination and not token:
        raise ConfigError(f"{sink} token cannot be nil")


class Options:
    """Fluent builder for Config.

    Usage:
        config = (
            Options()
            .service("api")
            .version("v1.2.0")
            .with_slack_notifier("xoxb-...", "C0123", should_report=lambda e: e.level >= Level.ERROR)
            .build()
        )
    """

    def __init__(self) -> None:
        self._draft: dict[str, Any] = {}
        self._workplace: dict[str, Any] = {}
        self._slack: dict[str, Any] = {}
        self._document_store: dict[str, Any] = {}

    @classmethod
    def from_settings(cls, settings: Optional[RelaySettings] = None) -> Options:
        """Seed a builder from environment settings."""
        settings = settings or RelaySettings()
        opts = (
            cls()
            .service(settings.service)
            .version(settings.version)
            .prefix(settings.prefix)
            .default_status(settings.default_status)
            .level(settings.level)
            .colours(settings.colours)
            .timestamp_format(settings.timestamp_format)
            .queue_size(settings.queue_size)
            .notify_timeout(settings.notify_timeout)
        )
        slack_token = settings.slack_token.get_secret_value() if settings.slack_token else ""
        if slack_token or settings.slack_channel:
            opts.with_slack_notifier(slack_token, settings.slack_channel)
        workplace_token = settings.workplace_token.get_secret_value() if settings.workplace_token else ""
        if workplace_token or settings.workplace_thread:
            opts.with_workplace_notifier(workplace_token, settings.workplace_thread)
        return opts

    def service(self, service: str) -> Options:
        """Service name, used in notifications and as the document store identity."""
        self._draft["service"] = service
        return self

    def version(self, version: str) -> Options:
        self._draft["version"] = version
        return self

    def prefix(self, prefix: str) -> Options:
        """The token written to every line before anything else."""
        self._draft["prefix"] = prefix
        return self

    def default_status(self, status: str) -> Options:
        """Status column text for entries without a status code."""
        self._draft["default_status"] = status
        return self

    def timestamp_format(self, fmt: Optional[str]) -> Options:
        self._draft["timestamp_format"] = fmt
        return self

    def colours(self, enabled: bool) -> Options:
        self._draft["colours"] = enabled
        return self

    def level(self, level: str | int | Level) -> Options:
        self._draft["level"] = Level.parse(level)
        return self

    def queue_size(self, size: int) -> Options:
        self._draft["queue_size"] = size
        return self

    def notify_timeout(self, seconds: float) -> Options:
        self._draft["notify_timeout"] = seconds
        return self

    def with_workplace_notifier(
        self,
        token: str,
        thread: str,
        *,
        should_report: Optional[Callable[..., bool]] = None,
        format_message: Optional[Callable[..., str]] = None,
    ) -> Options:
        """Send entries to a Workplace thread."""
        self._workplace = {"token": token, "thread": thread}
        if should_report is not None:
            self._workplace["should_report"] = should_report
        if format_message is not None:
            self._workplace["format_message"] = format_message
        return self

    def with_slack_notifier(
        self,
        token: str,
        channel: str,
        *,
        should_report: Optional[Callable[..., bool]] = None,
        format_message: Optional[Callable[..., str]] = None,
    ) -> Options:
        """Send entries to a Slack channel."""
        self._slack = {"token": token, "channel": channel}
        if should_report is not None:
            self._slack["should_report"] = should_report
        if format_message is not None:
            self._slack["format_message"] = format_message
        return self

    def with_document_store(
        self,
        collection: Any,
        *,
        should_report: Optional[Callable[..., bool]] = None,
        expiration_levels: Optional[Mapping[Level, timedelta]] = None,
    ) -> Options:
        """Persist entries to a document store collection (pymongo Collection compatible)."""
        self._document_store = {"collection": collection}
        if should_report is not None:
            self._document_store["should_report"] = should_report
        if expiration_levels is not None:
            merged = dict(DEFAULT_EXPIRATION_LEVELS)
            merged.update(expiration_levels)
            self._document_store["expiration_levels"] = merged
        return self

    def validate(self) -> None:
        """Check the draft, raising ConfigError on the first problem found."""
        if not self._draft.get("service"):
            raise ConfigError("service name cannot be empty")
        _check_pair("workplace", self._workplace.get("token", ""), self._workplace.get("thread", ""), "thread")
        _check_pair("slack", self._slack.get("token", ""), self._slack.get("channel", ""), "channel")

    def build(self) -> Config:
        """Validate the draft, apply defaults and return an immutable Config."""
        self.validate()
        values = {k: v for k, v in self._draft.items() if v not in (None, "") or k == "timestamp_format"}
        return Config(
            **values,
            workplace=WorkplaceConfig(**self._workplace),
            slack=SlackConfig(**self._slack),
            document_store=DocumentStoreConfig(**self._document_store),
        )
