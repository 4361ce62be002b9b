"""Channel and user listings, user search and message posting."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from slack_sdk.web.async_client import AsyncWebClient
from structlog.stdlib import BoundLogger

from slackgate.application.services.identity_cache import (
    IdentityCache,
    UserNotFoundError,
)
from slackgate.domain.entities.user_profile import UserProfile
from slackgate.infrastructure.slack import UPSTREAM_ERRORS

CHANNEL_TYPES = "public_channel,private_channel"


async def paginate(
    call: Callable[..., Awaitable[Any]], key: str, **kwargs: Any
) -> AsyncIterator[dict[str, Any]]:
    """Yield the items under ``key`` across all cursor pages of a Slack call."""
    cursor: str | None = None
    while True:
        if cursor:
            kwargs["cursor"] = cursor
        response = await call(**kwargs)
        for item in response.get(key) or []:
            yield item
        cursor = (response.get("response_metadata") or {}).get("next_cursor")
        if not cursor:
            return


class WorkspaceDirectory:
    """Read and write access to the workspace beyond message history.

    Args:
        identity_cache: Cache that every profile seen here is written to.
        logger: Structured logger.
    """

    def __init__(self, identity_cache: IdentityCache, logger: BoundLogger) -> None:
        self._identity_cache = identity_cache
        self._logger = logger

    async def list_channels(self, client: AsyncWebClient) -> list[dict[str, Any]]:
        """List public and private channels visible to the token.

        Returns:
            ``{"id", "name"}`` per channel.
        """
        return [
            {"id": channel.get("id"), "name": channel.get("name")}
            async for channel in paginate(
                client.conversations_list, "channels", types=CHANNEL_TYPES
            )
        ]

    async def channel_members(
        self, client: AsyncWebClient, channel_id: str
    ) -> list[UserProfile]:
        """Return fresh profiles of a channel's members.

        Every member is looked up concurrently and cached. Members whose
        lookup fails are logged and left out.

        Raises:
            SlackClientError: If conversations.members fails.
        """
        member_ids = [
            member_id
            async for member_id in paginate(
                client.conversations_members, "members", channel=channel_id
            )
        ]
        profiles = await asyncio.gather(
            *(self._fetch_member(client, member_id) for member_id in member_ids)
        )
        return [profile for profile in profiles if profile is not None]

    async def _fetch_member(
        self, client: AsyncWebClient, user_id: str
    ) -> UserProfile | None:
        try:
            return await self._identity_cache.fetch(client, user_id)
        except (UserNotFoundError, *UPSTREAM_ERRORS) as e:
            self._logger.error(
                "Failed to fetch user info", user_id=user_id, error=str(e)
            )
            return None

    async def search_users(
        self,
        client: AsyncWebClient,
        email: str | None = None,
        name: str | None = None,
    ) -> list[UserProfile]:
        """List workspace users, optionally filtered.

        All listed profiles are cached. Filters are case-insensitive substring
        matches: ``email`` on the email, ``name`` on name, real name or
        display name.
        """
        results: list[UserProfile] = []
        async for user in paginate(client.users_list, "members"):
            profile = UserProfile.from_slack_user(user)
            self._identity_cache.put(profile)
            if profile.matches(email=email, name=name):
                results.append(profile)
        return results

    async def send_message(
        self, client: AsyncWebClient, channel_id: str, text: str
    ) -> str | None:
        """Post a message and return its ts."""
        response = await client.chat_postMessage(channel=channel_id, text=text)
        self._logger.info("Message sent", channel=channel_id, ts=response.get("ts"))
        return response.get("ts")
