"""Domain entities."""

from slackgate.domain.entities.event import (
    EnvelopeType,
    SlackEventEnvelope,
    SlackEventType,
)
from slackgate.domain.entities.message import (
    ChannelCrawlResult,
    CrawlFilters,
    NormalizedMessage,
    RawMessage,
    ThreadReplies,
    render_lines,
)
from slackgate.domain.entities.team_info import TeamInfo
from slackgate.domain.entities.user_profile import UserProfile

__all__ = [
    "ChannelCrawlResult",
    "CrawlFilters",
    "EnvelopeType",
    "NormalizedMessage",
    "RawMessage",
    "SlackEventEnvelope",
    "SlackEventType",
    "TeamInfo",
    "ThreadReplies",
    "UserProfile",
    "render_lines",
]
