"""TeamInfo entity for the Slack workspace."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class TeamInfo(BaseModel):
    """Identity of the workspace a token belongs to.

    Attributes:
        id: Slack team ID.
        domain: Workspace subdomain used in ``https://{domain}.slack.com``.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None
    domain: str

    @classmethod
    def from_auth_test(cls, response: Any) -> "TeamInfo":
        """Build from an auth.test response.

        ``team_domain`` is not always present; the team name is used then.
        """
        return cls(
            id=response.get("team_id"),
            domain=response.get("team_domain") or response.get("team") or "",
        )
