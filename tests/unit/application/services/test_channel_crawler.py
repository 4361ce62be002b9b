"""Tests for ChannelCrawler."""

import asyncio
from typing import Any
from unittest.mock import AsyncMock

import pytest
import structlog

from slackgate.application.services.channel_crawler import ChannelCrawler
from slackgate.application.services.identity_cache import IdentityCache
from slackgate.application.services.message_normalizer import MessageNormalizer
from slackgate.application.services.scopes import SlackScope
from slackgate.application.services.team_resolver import TeamResolver
from slackgate.application.services.thread_flattener import ThreadFlattener
from slackgate.domain.entities.message import CrawlFilters
from slackgate.domain.formatting import create_formatter

from slack_fakes import slack_api_error, slack_user, users_info_for


@pytest.fixture
def crawler(
    identity_cache: IdentityCache, logger: structlog.BoundLogger
) -> ChannelCrawler:
    normalizer = MessageNormalizer(identity_cache, create_formatter("time"))
    return ChannelCrawler(normalizer, ThreadFlattener(normalizer, logger), logger)


@pytest.fixture
def scope(slack_client: AsyncMock, logger: structlog.BoundLogger) -> SlackScope:
    slack_client.auth_test.return_value = {"team_id": "T001", "team_domain": "acme"}
    slack_client.users_info.side_effect = users_info_for(
        slack_user("U1", "alice"), slack_user("U2", "bob")
    )
    return SlackScope(slack_client, TeamResolver(slack_client, logger))


def history(*messages: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {"ok": True, "messages": list(messages), **extra}


class TestCrawlChannel:
    """Tests for ChannelCrawler.crawl_channel."""

    async def test_enriches_messages(
        self, crawler: ChannelCrawler, scope: SlackScope, slack_client: AsyncMock
    ) -> None:
        slack_client.conversations_history.return_value = history(
            {"ts": "1700000002.000100", "user": "U2", "text": "newer"},
            {"ts": "1700000001.000100", "user": "U1", "text": "older"},
            has_more=True,
            response_metadata={"next_cursor": "bmV4dA=="},
        )

        result = await crawler.crawl_channel(scope, "C1", CrawlFilters(limit=2))

        assert result.channel == "C1"
        assert [m.text for m in result.messages] == ["newer", "older"]
        assert [m.user.name for m in result.messages] == ["bob", "alice"]
        assert result.messages[0].slack_link == (
            "https://acme.slack.com/archives/C1/p1700000002000100"
        )
        assert result.total == 2
        assert result.has_more is True
        assert result.next_cursor == "bmV4dA=="
        assert result.error is None

    async def test_passes_filters_to_history(
        self, crawler: ChannelCrawler, scope: SlackScope, slack_client: AsyncMock
    ) -> None:
        slack_client.conversations_history.return_value = history()
        filters = CrawlFilters(
            limit=5, oldest="1.0", latest="2.0", inclusive=True, cursor="abc"
        )

        await crawler.crawl_channel(scope, "C1", filters)

        slack_client.conversations_history.assert_awaited_once_with(
            channel="C1",
            limit=5,
            inclusive=True,
            oldest="1.0",
            latest="2.0",
            cursor="abc",
        )

    async def test_threads_are_flattened(
        self, crawler: ChannelCrawler, scope: SlackScope, slack_client: AsyncMock
    ) -> None:
        root_ts = "1700000001.000100"
        slack_client.conversations_history.return_value = history(
            {"ts": "1700000005.000100", "user": "U1", "text": "plain"},
            {
                "ts": root_ts,
                "user": "U1",
                "text": "root",
                "reply_count": 1,
                "thread_ts": root_ts,
            },
        )
        slack_client.conversations_replies.return_value = history(
            {"ts": root_ts, "user": "U1", "text": "root", "thread_ts": root_ts},
            {"ts": "1700000003.000100", "user": "U2", "text": "reply"},
        )

        result = await crawler.crawl_channel(scope, "C1", CrawlFilters())

        plain, root = result.messages
        assert plain.replies == []
        assert [r.text for r in root.replies] == ["reply"]
        assert root.replies_error is None
        slack_client.conversations_replies.assert_awaited_once_with(
            channel="C1", ts=root_ts
        )

    async def test_thread_failure_keeps_root(
        self, crawler: ChannelCrawler, scope: SlackScope, slack_client: AsyncMock
    ) -> None:
        slack_client.conversations_history.return_value = history(
            {"ts": "1.1", "user": "U1", "text": "root", "reply_count": 3},
        )
        slack_client.conversations_replies.side_effect = slack_api_error("ratelimited")

        result = await crawler.crawl_channel(scope, "C1", CrawlFilters())

        (root,) = result.messages
        assert root.text == "root"
        assert root.replies == []
        assert "ratelimited" in (root.replies_error or "")

    async def test_malformed_reply_keeps_root(
        self, crawler: ChannelCrawler, scope: SlackScope, slack_client: AsyncMock
    ) -> None:
        slack_client.conversations_history.return_value = history(
            {"ts": "1.1", "user": "U1", "text": "root", "reply_count": 1},
        )
        slack_client.conversations_replies.return_value = history(
            {"ts": "1.1", "user": "U1", "text": "root"},
            {"ts": "1.2", "user": "U1", "text": None},
        )

        result = await crawler.crawl_channel(scope, "C1", CrawlFilters())

        (root,) = result.messages
        assert root.text == "root"
        assert root.replies == []
        assert root.replies_error is not None

    async def test_order_follows_history_not_completion(
        self,
        crawler: ChannelCrawler,
        identity_cache: IdentityCache,
        scope: SlackScope,
        slack_client: AsyncMock,
    ) -> None:
        """The first message's author lookup finishes last."""

        async def users_info(user: str) -> dict[str, Any]:
            await asyncio.sleep(0.02 if user == "U1" else 0)
            return {"ok": True, "user": slack_user(user, user.lower())}

        slack_client.users_info.side_effect = users_info
        slack_client.conversations_history.return_value = history(
            {"ts": "3.0", "user": "U1", "text": "first"},
            {"ts": "2.0", "user": "U2", "text": "second"},
            {"ts": "1.0", "user": "U3", "text": "third"},
        )

        result = await crawler.crawl_channel(scope, "C1", CrawlFilters())

        assert [m.text for m in result.messages] == ["first", "second", "third"]

    async def test_team_failure_yields_empty_domain(
        self, crawler: ChannelCrawler, scope: SlackScope, slack_client: AsyncMock
    ) -> None:
        slack_client.auth_test.side_effect = slack_api_error("invalid_auth")
        slack_client.conversations_history.return_value = history(
            {"ts": "1.2", "user": "U1", "text": "x"}
        )

        result = await crawler.crawl_channel(scope, "C1", CrawlFilters())

        assert result.messages[0].slack_link == "https://.slack.com/archives/C1/p12"

    async def test_history_failure_raises(
        self, crawler: ChannelCrawler, scope: SlackScope, slack_client: AsyncMock
    ) -> None:
        slack_client.conversations_history.side_effect = slack_api_error(
            "channel_not_found"
        )

        with pytest.raises(Exception, match="channel_not_found"):
            await crawler.crawl_channel(scope, "C404", CrawlFilters())


class TestCrawl:
    """Tests for ChannelCrawler.crawl."""

    async def test_one_channel_failing_does_not_affect_other(
        self, crawler: ChannelCrawler, scope: SlackScope, slack_client: AsyncMock
    ) -> None:
        async def conversations_history(channel: str, **_: Any) -> dict[str, Any]:
            if channel == "CBAD":
                raise slack_api_error("channel_not_found")
            return history({"ts": "1.2", "user": "U1", "text": "hello"})

        slack_client.conversations_history.side_effect = conversations_history

        results = await crawler.crawl(scope, ["CBAD", "CGOOD"], CrawlFilters())

        assert list(results) == ["CBAD", "CGOOD"]
        bad, good = results["CBAD"], results["CGOOD"]
        assert bad.messages == []
        assert "channel_not_found" in (bad.error or "")
        assert good.error is None
        assert [m.text for m in good.messages] == ["hello"]

    async def test_malformed_channel_does_not_affect_other(
        self, crawler: ChannelCrawler, scope: SlackScope, slack_client: AsyncMock
    ) -> None:
        async def conversations_history(channel: str, **_: Any) -> dict[str, Any]:
            if channel == "CBAD":
                return history({"ts": "1.2", "text": None})
            return history({"ts": "1.2", "user": "U1", "text": "hello"})

        slack_client.conversations_history.side_effect = conversations_history

        results = await crawler.crawl(scope, ["CBAD", "CGOOD"], CrawlFilters())

        assert results["CBAD"].messages == []
        assert results["CBAD"].error is not None
        assert results["CGOOD"].error is None
        assert [m.text for m in results["CGOOD"].messages] == ["hello"]

    async def test_team_resolved_once_across_channels(
        self, crawler: ChannelCrawler, scope: SlackScope, slack_client: AsyncMock
    ) -> None:
        slack_client.conversations_history.return_value = history()

        await crawler.crawl(scope, ["C1", "C2", "C3"], CrawlFilters())
        await crawler.crawl(scope, ["C1"], CrawlFilters())

        # Concurrent first lookups may each call auth.test; later ones must not
        calls_after_first_crawl = slack_client.auth_test.await_count
        await crawler.crawl(scope, ["C4"], CrawlFilters())
        assert slack_client.auth_test.await_count == calls_after_first_crawl

    async def test_authors_shared_through_cache(
        self,
        crawler: ChannelCrawler,
        identity_cache: IdentityCache,
        scope: SlackScope,
        slack_client: AsyncMock,
    ) -> None:
        slack_client.conversations_history.return_value = history(
            {"ts": "1.2", "user": "U1", "text": "x"}
        )

        await crawler.crawl(scope, ["C1"], CrawlFilters())
        await crawler.crawl(scope, ["C2"], CrawlFilters())

        assert "U1" in identity_cache
        assert slack_client.users_info.await_count == 1
