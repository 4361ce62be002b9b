"""Infrastructure layer."""

from slackgate.infrastructure.slack import SlackClientFactory

__all__ = ["SlackClientFactory"]
