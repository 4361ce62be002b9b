"""Configuration module for slackgate."""

from slackgate.config.loader import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    EnvVarNotFoundError,
    load_config,
)
from slackgate.config.models import (
    AppConfig,
    FormattingConfig,
    LoggingConfig,
    ServerConfig,
    SlackConfig,
)

__all__ = [
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "EnvVarNotFoundError",
    # Functions
    "load_config",
    # Models
    "AppConfig",
    "FormattingConfig",
    "LoggingConfig",
    "ServerConfig",
    "SlackConfig",
]
