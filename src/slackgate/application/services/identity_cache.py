"""In-memory cache of Slack user profiles."""

from slack_sdk.web.async_client import AsyncWebClient
from structlog.stdlib import BoundLogger

from slackgate.domain.entities.user_profile import UserProfile
from slackgate.infrastructure.slack import UPSTREAM_ERRORS


class UserNotFoundError(Exception):
    """Raised when users.info answers without a user object."""


class IdentityCache:
    """Maps Slack user IDs to normalized profiles for the process lifetime.

    Entries are filled lazily on first lookup and overwritten when a newer
    profile is seen (users.list, member joins, profile change events). There
    is no locking: concurrent first lookups of the same ID may each call
    users.info, and the last one to finish wins. Failed lookups are never
    cached, so a later lookup retries upstream.

    Args:
        logger: Structured logger.
    """

    def __init__(self, logger: BoundLogger) -> None:
        self._logger = logger
        self._profiles: dict[str, UserProfile] = {}

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._profiles

    def get(self, user_id: str) -> UserProfile | None:
        """Return the cached profile without calling upstream."""
        return self._profiles.get(user_id)

    def put(self, profile: UserProfile) -> None:
        """Store a profile, replacing any previous entry for the same ID."""
        if profile.id is None:
            return
        self._profiles[profile.id] = profile

    def clear(self) -> None:
        self._profiles.clear()

    async def fetch(self, client: AsyncWebClient, user_id: str) -> UserProfile:
        """Fetch a profile from users.info and cache it.

        Args:
            client: Slack client to call with.
            user_id: Slack user ID.

        Returns:
            The fresh profile.

        Raises:
            UserNotFoundError: If the response carries no user.
            SlackClientError: On Slack API failures.
            aiohttp.ClientError: On network failures.
        """
        response = await client.users_info(user=user_id)
        user = response.get("user")
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        profile = UserProfile.from_slack_user(user)
        self.put(profile)
        return profile

    async def resolve(
        self, client: AsyncWebClient, user_id: str | None
    ) -> UserProfile:
        """Return the profile for a user, fetching it on a cache miss.

        Never raises for upstream failures: an unresolvable user yields the
        placeholder from ``UserProfile.unknown``, which is not cached.

        Args:
            client: Slack client used on a cache miss.
            user_id: Slack user ID; messages from integrations may have none.

        Returns:
            The cached, fetched or placeholder profile.
        """
        if user_id is None:
            return UserProfile.unknown(None)

        cached = self._profiles.get(user_id)
        if cached is not None:
            return cached

        try:
            return await self.fetch(client, user_id)
        except (UserNotFoundError, *UPSTREAM_ERRORS) as e:
            self._logger.warning(
                "Failed to resolve user", user_id=user_id, error=str(e)
            )
            return UserProfile.unknown(user_id)
