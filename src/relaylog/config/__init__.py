"""
relaylog configuration.

Two layers:
- ``RelaySettings``: environment variables (prefix ``RELAYLOG_``) and ``.env``
- ``Options`` -> ``Config``: the fluent builder and the immutable configuration
  every Logger is constructed from

Usage:
    from relaylog.config import Options

    config = Options().service("api").prefix("api").build()

    # or from the environment
    config = Options.from_settings().build()
"""

from .options import (
    DEFAULT_PREFIX,
    DEFAULT_STATUS,
    Config,
    DocumentStoreConfig,
    Options,
    SlackConfig,
    WorkplaceConfig,
)
from .settings import RelaySettings

__all__ = [
    "Config",
    "DocumentStoreConfig",
    "Options",
    "RelaySettings",
    "SlackConfig",
    "WorkplaceConfig",
    "DEFAULT_PREFIX",
    "DEFAULT_STATUS",
]
