"""Fetches and flattens thread replies."""

import asyncio

from pydantic import ValidationError
from slack_sdk.web.async_client import AsyncWebClient
from structlog.stdlib import BoundLogger

from slackgate.application.services.message_normalizer import MessageNormalizer
from slackgate.domain.entities.message import RawMessage, ThreadReplies
from slackgate.infrastructure.slack import UPSTREAM_ERRORS


class ThreadFlattener:
    """Builds the flat reply list of a thread.

    Reply fetching is best effort: an upstream failure or a malformed reply
    produces a degraded result instead of an exception so that the root
    message still renders.

    Args:
        normalizer: Normalizer applied to each reply.
        logger: Structured logger.
    """

    def __init__(self, normalizer: MessageNormalizer, logger: BoundLogger) -> None:
        self._normalizer = normalizer
        self._logger = logger

    async def flatten_thread(
        self,
        client: AsyncWebClient,
        channel_id: str,
        parent_ts: str,
        team_domain: str,
    ) -> ThreadReplies:
        """Return the replies of a thread in upstream (chronological) order.

        The root message, which conversations.replies returns first, is left
        out.

        Args:
            client: Slack client.
            channel_id: Channel holding the thread.
            parent_ts: ts of the thread root.
            team_domain: Workspace domain for deep links.

        Returns:
            ``ThreadReplies.ok`` with the replies, or ``ThreadReplies.degraded``
            when the fetch failed or a reply was malformed.
        """
        try:
            raw_replies = await self._fetch_replies(client, channel_id, parent_ts)
        except (ValidationError, *UPSTREAM_ERRORS) as e:
            self._logger.error(
                "Failed to fetch thread replies",
                channel=channel_id,
                thread_ts=parent_ts,
                error=str(e),
            )
            return ThreadReplies.degraded(str(e))

        replies = await asyncio.gather(
            *(
                self._normalizer.normalize(
                    client, raw, channel_id, team_domain, is_thread_reply=True
                )
                for raw in raw_replies
                if raw.ts != parent_ts
            )
        )
        return ThreadReplies.ok(list(replies))

    async def _fetch_replies(
        self, client: AsyncWebClient, channel_id: str, parent_ts: str
    ) -> list[RawMessage]:
        messages: list[RawMessage] = []
        cursor: str | None = None
        while True:
            kwargs = {"channel": channel_id, "ts": parent_ts}
            if cursor:
                kwargs["cursor"] = cursor
            response = await client.conversations_replies(**kwargs)
            messages.extend(
                RawMessage.model_validate(item)
                for item in response.get("messages") or []
            )
            cursor = (response.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                return messages
