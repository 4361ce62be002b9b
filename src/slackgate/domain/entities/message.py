"""Message entities: raw Slack messages and their normalized form."""

from collections.abc import Mapping
from typing import Any, Literal

from jinja2 import Template
from pydantic import BaseModel, ConfigDict, Field

from slackgate.domain.entities.user_profile import UserProfile

CHANNEL_JOIN_SUBTYPE = "channel_join"

MESSAGE_LINE_TEMPLATE = Template(
    "{{ indent }}[{{ message.formatted_time }}] {{ message.user.label }}: "
    "{{ message.text }} <{{ message.slack_link }}>"
)


class RawMessage(BaseModel):
    """Message as returned by conversations.history / conversations.replies.

    Only the fields the gateway reads are declared; everything else in the
    upstream payload is ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    ts: str
    user: str | None = None
    text: str = ""
    reply_count: int = 0
    thread_ts: str | None = None
    subtype: str | None = None

    @property
    def is_channel_join(self) -> bool:
        return self.subtype == CHANNEL_JOIN_SUBTYPE


class NormalizedMessage(BaseModel):
    """Message enriched with its author, display time and deep link.

    Attributes:
        user: Resolved author profile (placeholder when unresolvable).
        text: Message text, synthesized for channel join messages.
        timestamp: Raw Slack ts, kept as the message identifier.
        formatted_time: Timestamp rendered for display.
        thread_ts: Root ts of the thread this message belongs to, if any.
        is_thread_reply: True for messages produced by thread flattening.
        slack_link: Deep link back to the message in Slack.
        replies: Flattened thread replies, root excluded.
        replies_error: Reason the reply fetch degraded, None otherwise.
    """

    user: UserProfile
    text: str
    timestamp: str
    formatted_time: str
    thread_ts: str | None = None
    is_thread_reply: bool = False
    slack_link: str
    replies: list["NormalizedMessage"] = Field(default_factory=list)
    replies_error: str | None = None

    def to_line(self, indent: str = "") -> str:
        """Render the message as a single display line."""
        return MESSAGE_LINE_TEMPLATE.render(message=self, indent=indent)


def render_lines(messages: list[NormalizedMessage]) -> list[str]:
    """Render messages as display lines, replies indented under their root."""
    lines: list[str] = []
    for message in messages:
        lines.append(message.to_line())
        lines.extend(reply.to_line(indent="    ") for reply in message.replies)
    return lines


class ThreadReplies(BaseModel):
    """Outcome of fetching a thread's replies.

    ``degraded`` means the fetch failed and ``messages`` is empty for that
    reason, as opposed to ``ok`` with a genuinely empty thread.
    """

    status: Literal["ok", "degraded"]
    messages: list[NormalizedMessage] = Field(default_factory=list)
    reason: str | None = None

    @classmethod
    def ok(cls, messages: list[NormalizedMessage]) -> "ThreadReplies":
        return cls(status="ok", messages=messages)

    @classmethod
    def degraded(cls, reason: str) -> "ThreadReplies":
        return cls(status="degraded", reason=reason)

    @property
    def is_degraded(self) -> bool:
        return self.status == "degraded"


class CrawlFilters(BaseModel):
    """History filters accepted by the crawl routes.

    Attributes:
        limit: Maximum number of messages to fetch.
        oldest: Only messages after this ts.
        latest: Only messages before this ts.
        inclusive: Include messages with exactly oldest/latest ts.
        cursor: Pagination cursor from a previous response.
    """

    limit: int = 100
    oldest: str | None = None
    latest: str | None = None
    inclusive: bool = False
    cursor: str | None = None

    @classmethod
    def from_query(
        cls, query: Mapping[str, str], default_limit: int = 100
    ) -> "CrawlFilters":
        """Build filters from request query parameters.

        A limit that is missing, non-numeric or not positive falls back to
        ``default_limit``. Empty strings count as absent.
        """
        try:
            limit = int(query.get("limit", ""))
        except ValueError:
            limit = default_limit
        if limit <= 0:
            limit = default_limit

        return cls(
            limit=limit,
            oldest=query.get("oldest") or None,
            latest=query.get("latest") or None,
            inclusive=query.get("inclusive") == "true",
            cursor=query.get("cursor") or None,
        )

    def to_history_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for conversations.history, omitting unset ones."""
        kwargs: dict[str, Any] = {"limit": self.limit, "inclusive": self.inclusive}
        for key in ("oldest", "latest", "cursor"):
            value = getattr(self, key)
            if value is not None:
                kwargs[key] = value
        return kwargs


class ChannelCrawlResult(BaseModel):
    """Messages crawled from one channel, or the error that prevented it."""

    channel: str
    messages: list[NormalizedMessage] = Field(default_factory=list)
    has_more: bool = False
    next_cursor: str | None = None
    error: str | None = None

    @property
    def total(self) -> int:
        return len(self.messages)

    @classmethod
    def failed(cls, channel: str, error: str) -> "ChannelCrawlResult":
        return cls(channel=channel, error=error)

    def to_payload(self, as_text: bool = False) -> dict[str, Any]:
        """JSON-ready representation for HTTP responses."""
        messages: list[Any]
        if as_text:
            messages = render_lines(self.messages)
        else:
            messages = [message.model_dump() for message in self.messages]
        return {
            "channel": self.channel,
            "messages": messages,
            "total": self.total,
            "has_more": self.has_more,
            "next_cursor": self.next_cursor,
            "error": self.error,
        }
