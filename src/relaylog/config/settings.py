"""
Environment driven logger settings.
"""

from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class RelaySettings(BaseSettings):
    """Logger settings loaded from the environment.

    Prefix: RELAYLOG_
    """

    model_config = SettingsConfigDict(
        env_prefix="RELAYLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    service: str = Field(default="", description="Service name, required")
    version: str = Field(default="", description="Running version of the service")
    prefix: str = Field(default="", description="Token written before every line")
    default_status: str = Field(default="", description="Status column text when no status code is set")
    level: str = Field(default="trace", description="Minimum level (trace, debug, info, warn, error, fatal, panic)")
    colours: bool = Field(default=True, description="Colorize console lines")
    timestamp_format: str = Field(default="%Y-%m-%d %H:%M:%S", description="Console timestamp format")
    queue_size: int = Field(default=1000, ge=1, description="Per sink worker queue bound")
    notify_timeout: float = Field(default=10.0, gt=0, description="Chat transport timeout in seconds")

    slack_token: Optional[SecretStr] = Field(default=None, description="Slack bot token")
    slack_channel: str = Field(default="", description="Slack channel ID")
    workplace_token: Optional[SecretStr] = Field(default=None, description="Workplace access token")
    workplace_thread: str = Field(default="", description="Workplace thread key")
