"""slackgate - HTTP gateway for the Slack Web API."""

__version__ = "0.1.0"
