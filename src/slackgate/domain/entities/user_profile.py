"""UserProfile entity for Slack workspace members."""

from typing import Any

from pydantic import BaseModel, ConfigDict

UNKNOWN_NAME = "Unknown"


class UserProfile(BaseModel):
    """Normalized view of a Slack user.

    Attributes:
        id: Slack user ID (e.g. ``U0123ABCD``).
        name: Slack handle.
        real_name: Full name as entered by the user.
        display_name: Profile display name, falling back to real_name and
            then name when the user never set one.
        email: Profile email, only present with the users:read.email scope.
        avatar: URL of the 192px avatar image.
        is_bot: Whether the user is a bot user.
        is_admin: Whether the user is a workspace admin.
        team_id: ID of the workspace the user belongs to.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None
    name: str | None = None
    real_name: str | None = None
    display_name: str | None = None
    email: str | None = None
    avatar: str | None = None
    is_bot: bool = False
    is_admin: bool = False
    team_id: str | None = None

    @classmethod
    def from_slack_user(cls, user: dict[str, Any]) -> "UserProfile":
        """Build a profile from a Slack user object.

        Accepts the ``user`` field of a users.info / users.list response or of
        a ``user_change`` event.

        Args:
            user: Raw Slack user object.

        Returns:
            The normalized profile.
        """
        profile = user.get("profile") or {}
        name = user.get("name")
        real_name = user.get("real_name") or profile.get("real_name")
        return cls(
            id=user.get("id"),
            name=name,
            real_name=real_name,
            display_name=profile.get("display_name") or real_name or name,
            email=profile.get("email") or None,
            avatar=profile.get("image_192") or None,
            is_bot=bool(user.get("is_bot", False)),
            is_admin=bool(user.get("is_admin", False)),
            team_id=user.get("team_id"),
        )

    @classmethod
    def unknown(cls, user_id: str | None) -> "UserProfile":
        """Placeholder profile used when a user cannot be resolved."""
        return cls(
            id=user_id,
            name=UNKNOWN_NAME,
            real_name=UNKNOWN_NAME,
            display_name=UNKNOWN_NAME,
        )

    @property
    def label(self) -> str:
        """Best human-readable name for this user."""
        return self.display_name or self.real_name or self.name or UNKNOWN_NAME

    def matches(self, email: str | None = None, name: str | None = None) -> bool:
        """Check case-insensitive substring filters.

        Args:
            email: Substring to look for in the email.
            name: Substring to look for in name, real_name or display_name.

        Returns:
            True if every given filter matches.
        """
        if email:
            if email.lower() not in (self.email or "").lower():
                return False
        if name:
            needle = name.lower()
            candidates = (self.name, self.real_name, self.display_name)
            if not any(needle in (value or "").lower() for value in candidates):
                return False
        return True
