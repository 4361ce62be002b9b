"""Factory for scoped Slack Web API clients."""

import asyncio

import aiohttp
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.web.async_client import AsyncWebClient

from slackgate.config.models import SlackConfig

# Everything a Slack Web API call can raise when the upstream call fails
UPSTREAM_ERRORS: tuple[type[BaseException], ...] = (
    SlackClientError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
)


class MissingTokenError(Exception):
    """Raised when neither the request nor the server provides a token."""


def slack_error_code(error: BaseException) -> str | None:
    """Return Slack's error code (e.g. ``channel_not_found``), if any."""
    if isinstance(error, SlackApiError) and error.response is not None:
        return error.response.get("error")
    return None


class SlackClientFactory:
    """Hands out AsyncWebClient instances per token.

    The server-side token gets one client for the process lifetime. Tokens
    supplied per request always get a fresh client so that no client state is
    shared between callers with different credentials.

    Args:
        config: Slack configuration holding the optional server-side token.
    """

    def __init__(self, config: SlackConfig) -> None:
        self._config = config
        self._default_client: AsyncWebClient | None = None
        if config.token:
            self._default_client = self._create(config.token)

    @property
    def default_client(self) -> AsyncWebClient | None:
        """Client for the server-side token, None when none is configured."""
        return self._default_client

    def client_for(self, token: str | None = None) -> AsyncWebClient:
        """Return the client to use for a request.

        Args:
            token: Token passed by the caller, if any. It takes precedence
                over the server-side token.

        Returns:
            A Slack client authenticated with the chosen token.

        Raises:
            MissingTokenError: If no token is available.
        """
        if token and token != self._config.token:
            return self._create(token)
        if self._default_client is None:
            raise MissingTokenError("Token is required")
        return self._default_client

    def _create(self, token: str) -> AsyncWebClient:
        return AsyncWebClient(token=token, timeout=self._config.timeout)
