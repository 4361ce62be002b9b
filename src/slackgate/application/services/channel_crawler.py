"""Crawls channel history with authors, links and thread replies."""

import asyncio

from pydantic import ValidationError
from slack_sdk.web.async_client import AsyncWebClient
from structlog.stdlib import BoundLogger

from slackgate.application.services.message_normalizer import MessageNormalizer
from slackgate.application.services.scopes import SlackScope
from slackgate.application.services.thread_flattener import ThreadFlattener
from slackgate.domain.entities.message import (
    ChannelCrawlResult,
    CrawlFilters,
    NormalizedMessage,
    RawMessage,
)
from slackgate.infrastructure.slack import UPSTREAM_ERRORS


class ChannelCrawler:
    """Fetches channel history and enriches every message.

    Channels are crawled concurrently, and so are the messages of a channel.
    Results keep the order of the request, not the order in which upstream
    calls complete.

    Args:
        normalizer: Normalizer applied to each history message.
        flattener: Thread flattener for messages with replies.
        logger: Structured logger.
    """

    def __init__(
        self,
        normalizer: MessageNormalizer,
        flattener: ThreadFlattener,
        logger: BoundLogger,
    ) -> None:
        self._normalizer = normalizer
        self._flattener = flattener
        self._logger = logger

    async def crawl(
        self, scope: SlackScope, channel_ids: list[str], filters: CrawlFilters
    ) -> dict[str, ChannelCrawlResult]:
        """Crawl several channels, isolating failures per channel.

        Args:
            scope: Client and team resolver for the caller's token.
            channel_ids: Channels to crawl.
            filters: History filters applied to every channel.

        Returns:
            Mapping of channel ID to its result, in request order. A channel
            that failed maps to a result with no messages and ``error`` set.
        """
        results = await asyncio.gather(
            *(
                self._crawl_isolated(scope, channel_id, filters)
                for channel_id in channel_ids
            )
        )
        return {result.channel: result for result in results}

    async def _crawl_isolated(
        self, scope: SlackScope, channel_id: str, filters: CrawlFilters
    ) -> ChannelCrawlResult:
        try:
            return await self.crawl_channel(scope, channel_id, filters)
        except (ValidationError, *UPSTREAM_ERRORS) as e:
            self._logger.error(
                "Failed to crawl channel", channel=channel_id, error=str(e)
            )
            return ChannelCrawlResult.failed(channel_id, str(e))

    async def crawl_channel(
        self, scope: SlackScope, channel_id: str, filters: CrawlFilters
    ) -> ChannelCrawlResult:
        """Crawl one page of a channel's history.

        Args:
            scope: Client and team resolver for the caller's token.
            channel_id: Channel to crawl.
            filters: History filters.

        Returns:
            The enriched messages with pagination info.

        Raises:
            SlackClientError: If conversations.history fails.
            pydantic.ValidationError: If a history message is malformed.
            aiohttp.ClientError: On network failures.
        """
        team_domain = await scope.team.get_domain()
        response = await scope.client.conversations_history(
            channel=channel_id, **filters.to_history_kwargs()
        )
        raw_messages = [
            RawMessage.model_validate(item) for item in response.get("messages") or []
        ]

        messages = await asyncio.gather(
            *(
                self._enrich(scope.client, raw, channel_id, team_domain)
                for raw in raw_messages
            )
        )

        metadata = response.get("response_metadata") or {}
        self._logger.info("Crawled channel", channel=channel_id, total=len(messages))
        return ChannelCrawlResult(
            channel=channel_id,
            messages=list(messages),
            has_more=bool(response.get("has_more", False)),
            next_cursor=metadata.get("next_cursor") or None,
        )

    async def _enrich(
        self,
        client: AsyncWebClient,
        raw: RawMessage,
        channel_id: str,
        team_domain: str,
    ) -> NormalizedMessage:
        message = await self._normalizer.normalize(
            client, raw, channel_id, team_domain
        )
        if raw.reply_count <= 0:
            return message

        thread = await self._flattener.flatten_thread(
            client, channel_id, raw.ts, team_domain
        )
        return message.model_copy(
            update={"replies": thread.messages, "replies_error": thread.reason}
        )
