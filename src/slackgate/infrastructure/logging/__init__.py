"""Logging infrastructure module."""

from slackgate.infrastructure.logging.setup import (
    bind_request_context,
    get_logger,
    setup_logging,
)

__all__ = ["bind_request_context", "get_logger", "setup_logging"]
