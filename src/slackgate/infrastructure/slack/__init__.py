"""Slack Web API infrastructure."""

from slackgate.infrastructure.slack.client_factory import (
    UPSTREAM_ERRORS,
    MissingTokenError,
    SlackClientFactory,
    slack_error_code,
)

__all__ = [
    "UPSTREAM_ERRORS",
    "MissingTokenError",
    "SlackClientFactory",
    "slack_error_code",
]
