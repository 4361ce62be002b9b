"""Slack event handler module."""

from typing import Any, Protocol, runtime_checkable

from slack_sdk.web.async_client import AsyncWebClient


@runtime_checkable
class SlackEventHandler(Protocol):
    """Protocol for handlers of Events API callbacks."""

    async def handle(
        self, event: dict[str, Any], client: AsyncWebClient | None
    ) -> None:
        """Handle one inner event.

        Args:
            event: The ``event`` object of an ``event_callback`` request.
            client: Client for the server-side token, None when the server
                has no token configured.
        """
        ...
