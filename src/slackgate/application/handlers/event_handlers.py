"""Slack event handler implementations."""

from typing import Any

from slack_sdk.web.async_client import AsyncWebClient
from structlog.stdlib import BoundLogger

from slackgate.application.handlers import SlackEventHandler
from slackgate.application.services.identity_cache import (
    IdentityCache,
    UserNotFoundError,
)
from slackgate.domain.entities.event import SlackEventType
from slackgate.domain.entities.user_profile import UNKNOWN_NAME, UserProfile
from slackgate.infrastructure.slack import UPSTREAM_ERRORS


class MessageEventHandler:
    """Logs new channel messages with author and channel names.

    Messages with a subtype (edits, joins, bot messages) are ignored.
    """

    def __init__(self, identity_cache: IdentityCache, logger: BoundLogger) -> None:
        self._identity_cache = identity_cache
        self._logger = logger

    async def handle(
        self, event: dict[str, Any], client: AsyncWebClient | None
    ) -> None:
        if event.get("subtype"):
            return
        if client is None:
            self._logger.warning("No server token, message not enriched")
            return

        author = await self._identity_cache.resolve(client, event.get("user"))
        channel_name = await self._channel_name(client, event.get("channel"))

        self._logger.info(
            "New message",
            channel=event.get("channel"),
            channel_name=channel_name,
            user=event.get("user"),
            user_name=author.name,
            text=event.get("text"),
            ts=event.get("ts"),
        )

    async def _channel_name(
        self, client: AsyncWebClient, channel_id: str | None
    ) -> str:
        if not channel_id:
            return UNKNOWN_NAME
        try:
            response = await client.conversations_info(channel=channel_id)
        except UPSTREAM_ERRORS as e:
            self._logger.warning(
                "Failed to fetch channel info", channel=channel_id, error=str(e)
            )
            return UNKNOWN_NAME
        return (response.get("channel") or {}).get("name") or UNKNOWN_NAME


class MemberJoinedChannelHandler:
    """Refreshes the cached profile of a user joining a channel."""

    def __init__(self, identity_cache: IdentityCache, logger: BoundLogger) -> None:
        self._identity_cache = identity_cache
        self._logger = logger

    async def handle(
        self, event: dict[str, Any], client: AsyncWebClient | None
    ) -> None:
        user_id = event.get("user")
        channel_id = event.get("channel")
        self._logger.info("User joined channel", user=user_id, channel=channel_id)

        if client is None or not user_id:
            self._logger.warning("Cannot refresh joining user", user=user_id)
            return

        try:
            await self._identity_cache.fetch(client, user_id)
        except (UserNotFoundError, *UPSTREAM_ERRORS) as e:
            self._logger.error(
                "Failed to fetch joining user", user=user_id, error=str(e)
            )
            return
        self._logger.info("Updated identity cache", user=user_id)


class UserChangeHandler:
    """Overwrites the cached profile with the one carried by the event."""

    def __init__(self, identity_cache: IdentityCache, logger: BoundLogger) -> None:
        self._identity_cache = identity_cache
        self._logger = logger

    async def handle(
        self, event: dict[str, Any], client: AsyncWebClient | None
    ) -> None:
        user = event.get("user")
        if not isinstance(user, dict) or not user.get("id"):
            self._logger.warning("user_change event without user object")
            return

        self._identity_cache.put(UserProfile.from_slack_user(user))
        self._logger.info(
            "Updated identity cache from profile change", user=user["id"]
        )


class EventHandlerRegistry:
    """Registry for Slack event handlers."""

    def __init__(self) -> None:
        """Initialize the registry."""
        self._handlers: dict[str, SlackEventHandler] = {}

    def register(
        self, event_type: SlackEventType | str, handler: SlackEventHandler
    ) -> None:
        """Register a handler for an inner event type.

        Args:
            event_type: The event type to handle.
            handler: The handler to register.
        """
        self._handlers[SlackEventType(event_type).value] = handler

    def get_handler(self, event_type: str | None) -> SlackEventHandler | None:
        """Get handler for an inner event type.

        Args:
            event_type: The ``type`` of the inner event.

        Returns:
            The handler if registered, None otherwise.
        """
        if event_type is None:
            return None
        return self._handlers.get(event_type)


def create_default_registry(
    identity_cache: IdentityCache, logger: BoundLogger
) -> EventHandlerRegistry:
    """Registry with the handlers for every event type the gateway reacts to."""
    registry = EventHandlerRegistry()
    registry.register(
        SlackEventType.MESSAGE, MessageEventHandler(identity_cache, logger)
    )
    registry.register(
        SlackEventType.MEMBER_JOINED_CHANNEL,
        MemberJoinedChannelHandler(identity_cache, logger),
    )
    registry.register(
        SlackEventType.USER_CHANGE, UserChangeHandler(identity_cache, logger)
    )
    return registry
