"""Turns raw Slack messages into their enriched output form."""

from slack_sdk.web.async_client import AsyncWebClient

from slackgate.application.services.identity_cache import IdentityCache
from slackgate.domain.entities.message import NormalizedMessage, RawMessage
from slackgate.domain.formatting import TimestampFormatter
from slackgate.domain.links import build_link


class MessageNormalizer:
    """Resolves a message's author, display time and deep link.

    Args:
        identity_cache: Cache used to resolve authors.
        formatter: Strategy for rendering the message ts.
    """

    def __init__(
        self, identity_cache: IdentityCache, formatter: TimestampFormatter
    ) -> None:
        self._identity_cache = identity_cache
        self._formatter = formatter

    async def normalize(
        self,
        client: AsyncWebClient,
        raw: RawMessage,
        channel_id: str,
        team_domain: str,
        is_thread_reply: bool = False,
    ) -> NormalizedMessage:
        """Normalize one message.

        Args:
            client: Slack client used when the author is not cached.
            raw: Message as returned by Slack; left untouched.
            channel_id: Channel the message belongs to.
            team_domain: Workspace domain for the deep link ("" if unknown).
            is_thread_reply: Whether the message comes from a thread fetch.

        Returns:
            The normalized message, without replies.
        """
        author = await self._identity_cache.resolve(client, raw.user)

        text = raw.text
        if raw.is_channel_join:
            text = f"{author.label} has joined the channel"

        return NormalizedMessage(
            user=author,
            text=text,
            timestamp=raw.ts,
            formatted_time=self._formatter.format(raw.ts),
            thread_ts=raw.thread_ts,
            is_thread_reply=is_thread_reply,
            slack_link=build_link(team_domain, channel_id, raw.ts),
        )
