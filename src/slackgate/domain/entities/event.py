"""Slack Events API envelope."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class EnvelopeType(str, Enum):
    """Top-level type of an Events API request."""

    URL_VERIFICATION = "url_verification"
    EVENT_CALLBACK = "event_callback"


class SlackEventType(str, Enum):
    """Inner event types the gateway reacts to."""

    MESSAGE = "message"
    MEMBER_JOINED_CHANNEL = "member_joined_channel"
    USER_CHANGE = "user_change"


class SlackEventEnvelope(BaseModel):
    """Body of a POST to the events endpoint.

    Attributes:
        type: ``url_verification``, ``event_callback`` or anything else Slack
            may send; unknown values are accepted and ignored downstream.
        challenge: Token to echo back during URL verification.
        event: Inner event for ``event_callback`` requests.
    """

    model_config = ConfigDict(extra="ignore")

    type: str | None = None
    challenge: str | None = None
    event: dict[str, Any] | None = None

    @property
    def is_url_verification(self) -> bool:
        return self.type == EnvelopeType.URL_VERIFICATION.value

    @property
    def is_event_callback(self) -> bool:
        return self.type == EnvelopeType.EVENT_CALLBACK.value and bool(self.event)

    @property
    def event_type(self) -> str | None:
        """Type of the inner event, if any."""
        if not self.event:
            return None
        return self.event.get("type")
