"""Shared fixtures for application layer tests."""

from unittest.mock import AsyncMock

import pytest
import structlog

from slackgate.application.services.identity_cache import IdentityCache


@pytest.fixture
def logger() -> structlog.BoundLogger:
    return structlog.get_logger()


@pytest.fixture
def slack_client() -> AsyncMock:
    """Stand-in for AsyncWebClient; every API method is an AsyncMock."""
    return AsyncMock()


@pytest.fixture
def identity_cache(logger: structlog.BoundLogger) -> IdentityCache:
    return IdentityCache(logger=logger)
