"""Pydantic models for application configuration."""

from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator


class SlackConfig(BaseModel):
    """Slack Web API configuration."""

    token: str | None = Field(
        default=None,
        description=(
            "Server-side Slack token used when a request does not carry its own "
            "?token= parameter (typically starts with 'xoxb-' or 'xoxp-'). "
            "When unset, every upstream route requires a per-request token."
        ),
    )
    timeout: int = Field(
        default=30,
        description="Timeout in seconds applied by the Slack client to each call.",
    )
    history_limit: int = Field(
        default=100,
        description=(
            "Number of messages requested from conversations.history when the "
            "caller does not pass a valid limit."
        ),
    )


class FormattingConfig(BaseModel):
    """Message display formatting configuration."""

    timestamp_style: Literal["time", "datetime"] = Field(
        default="time",
        description=(
            "How message timestamps are displayed: 'time' renders HH:MM:SS, "
            "'datetime' renders YYYY-MM-DD HH:MM:SS."
        ),
    )
    timezone: str = Field(
        default="UTC",
        description="IANA timezone name used when rendering message timestamps.",
    )

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        if value == "UTC":
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 3000


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "json"


class AppConfig(BaseModel):
    """Application configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    slack: SlackConfig = Field(default_factory=SlackConfig)
    formatting: FormattingConfig = Field(default_factory=FormattingConfig)
