"""Per-token request scopes."""

from dataclasses import dataclass

from slack_sdk.web.async_client import AsyncWebClient
from structlog.stdlib import BoundLogger

from slackgate.application.services.team_resolver import TeamResolver
from slackgate.infrastructure.slack import SlackClientFactory


@dataclass(frozen=True)
class SlackScope:
    """Slack client together with the team resolver for its token."""

    client: AsyncWebClient
    team: TeamResolver


class ScopeProvider:
    """Builds the SlackScope for each request.

    The scope of the server-side token is created once, so its team info is
    resolved once per process. A per-request token gets a new scope whose
    team info lives as long as that request.

    Args:
        client_factory: Factory handing out clients per token.
        logger: Logger passed to team resolvers.
    """

    def __init__(
        self, client_factory: SlackClientFactory, logger: BoundLogger
    ) -> None:
        self._client_factory = client_factory
        self._logger = logger
        self._default_scope: SlackScope | None = None
        default_client = client_factory.default_client
        if default_client is not None:
            self._default_scope = SlackScope(
                default_client, TeamResolver(default_client, logger)
            )

    @property
    def default_scope(self) -> SlackScope | None:
        return self._default_scope

    def scope_for(self, token: str | None = None) -> SlackScope:
        """Return the scope for a request token.

        Raises:
            MissingTokenError: If neither the request nor the server has a token.
        """
        client = self._client_factory.client_for(token)
        if self._default_scope is not None and client is self._default_scope.client:
            return self._default_scope
        return SlackScope(client, TeamResolver(client, self._logger))
