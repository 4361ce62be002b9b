"""Tests for MessageNormalizer."""

from unittest.mock import AsyncMock

import pytest

from slackgate.application.services.identity_cache import IdentityCache
from slackgate.application.services.message_normalizer import MessageNormalizer
from slackgate.domain.entities.message import RawMessage
from slackgate.domain.formatting import create_formatter

from slack_fakes import slack_api_error, slack_user


@pytest.fixture
def normalizer(identity_cache: IdentityCache) -> MessageNormalizer:
    return MessageNormalizer(identity_cache, create_formatter("time"))


class TestNormalize:
    """Tests for MessageNormalizer.normalize."""

    async def test_normalizes_message(
        self, normalizer: MessageNormalizer, slack_client: AsyncMock
    ) -> None:
        slack_client.users_info.return_value = {
            "ok": True,
            "user": slack_user("U1", "alice", display_name="Ali"),
        }
        raw = RawMessage(
            ts="1700000000.000100", user="U1", text="hi", thread_ts="1700000000.000100"
        )

        message = await normalizer.normalize(slack_client, raw, "C1", "acme")

        assert message.user.display_name == "Ali"
        assert message.text == "hi"
        assert message.timestamp == "1700000000.000100"
        assert message.formatted_time == "22:13:20"
        assert message.thread_ts == "1700000000.000100"
        assert message.is_thread_reply is False
        assert message.slack_link == (
            "https://acme.slack.com/archives/C1/p1700000000000100"
        )
        assert message.replies == []

    async def test_channel_join_text_is_synthesized(
        self, normalizer: MessageNormalizer, slack_client: AsyncMock
    ) -> None:
        slack_client.users_info.return_value = {
            "ok": True,
            "user": slack_user("U1", "alice", display_name="Ali"),
        }
        raw = RawMessage(
            ts="1700000000.000100",
            user="U1",
            subtype="channel_join",
            text="<@U1> has joined the channel",
        )

        message = await normalizer.normalize(slack_client, raw, "C1", "acme")

        assert message.text == "Ali has joined the channel"

    async def test_channel_join_with_unknown_user(
        self, normalizer: MessageNormalizer, slack_client: AsyncMock
    ) -> None:
        slack_client.users_info.side_effect = slack_api_error("user_not_found")
        raw = RawMessage(ts="1.2", user="U9", subtype="channel_join", text="raw")

        message = await normalizer.normalize(slack_client, raw, "C1", "acme")

        assert message.text == "Unknown has joined the channel"

    async def test_unresolvable_author_gets_placeholder(
        self, normalizer: MessageNormalizer, slack_client: AsyncMock
    ) -> None:
        slack_client.users_info.side_effect = slack_api_error("user_not_found")

        message = await normalizer.normalize(
            slack_client, RawMessage(ts="1.2", user="U9", text="x"), "C1", "acme"
        )

        assert message.user.id == "U9"
        assert message.user.name == "Unknown"

    async def test_empty_domain_builds_degenerate_link(
        self, normalizer: MessageNormalizer, slack_client: AsyncMock
    ) -> None:
        message = await normalizer.normalize(
            slack_client, RawMessage(ts="1.2", text="x"), "C1", ""
        )

        assert message.slack_link == "https://.slack.com/archives/C1/p12"

    async def test_raw_message_untouched(
        self, normalizer: MessageNormalizer, slack_client: AsyncMock
    ) -> None:
        slack_client.users_info.return_value = {
            "ok": True,
            "user": slack_user("U1", "a"),
        }
        raw = RawMessage(ts="1.2", user="U1", subtype="channel_join", text="raw")

        await normalizer.normalize(slack_client, raw, "C1", "acme")

        assert raw.text == "raw"

    async def test_datetime_formatter(
        self, identity_cache: IdentityCache, slack_client: AsyncMock
    ) -> None:
        normalizer = MessageNormalizer(identity_cache, create_formatter("datetime"))

        message = await normalizer.normalize(
            slack_client, RawMessage(ts="1700000000.000100"), "C1", "acme"
        )

        assert message.formatted_time == "2023-11-14 22:13:20"

    async def test_thread_reply_flag(
        self, normalizer: MessageNormalizer, slack_client: AsyncMock
    ) -> None:
        message = await normalizer.normalize(
            slack_client, RawMessage(ts="1.2"), "C1", "acme", is_thread_reply=True
        )

        assert message.is_thread_reply is True
