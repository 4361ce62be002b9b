"""Workspace identity lookup."""

from slack_sdk.web.async_client import AsyncWebClient
from structlog.stdlib import BoundLogger

from slackgate.domain.entities.team_info import TeamInfo
from slackgate.infrastructure.slack import UPSTREAM_ERRORS


class TeamResolver:
    """Resolves the workspace a client's token belongs to.

    The first successful auth.test result is kept for the lifetime of the
    resolver. Failures are not remembered, so the next call tries again.

    Args:
        client: Slack client whose token identifies the workspace.
        logger: Structured logger.
    """

    def __init__(self, client: AsyncWebClient, logger: BoundLogger) -> None:
        self._client = client
        self._logger = logger
        self._team: TeamInfo | None = None

    async def get_team_info(self) -> TeamInfo | None:
        """Return the workspace identity, or None if auth.test failed."""
        if self._team is not None:
            return self._team

        try:
            response = await self._client.auth_test()
        except UPSTREAM_ERRORS as e:
            self._logger.error("Failed to fetch team info", error=str(e))
            return None

        self._team = TeamInfo.from_auth_test(response)
        return self._team

    async def get_domain(self) -> str:
        """Return the workspace domain, or "" when it cannot be resolved."""
        team = await self.get_team_info()
        return team.domain if team else ""
