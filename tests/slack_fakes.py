"""Builders for Slack API payloads and errors used across tests."""

from typing import Any

from slack_sdk.errors import SlackApiError


def slack_api_error(code: str) -> SlackApiError:
    """Build the error slack_sdk raises for an ``ok: false`` response."""
    return SlackApiError(
        "The request to the Slack API failed.", {"ok": False, "error": code}
    )


def slack_user(user_id: str, name: str, **profile: Any) -> dict[str, Any]:
    """Minimal users.info ``user`` object."""
    return {
        "id": user_id,
        "team_id": "T001",
        "name": name,
        "real_name": name.title(),
        "is_bot": False,
        "profile": {"display_name": profile.pop("display_name", name), **profile},
    }


def users_info_for(*users: dict[str, Any]) -> Any:
    """side_effect for users_info answering from a fixed set of users."""
    by_id = {user["id"]: user for user in users}

    async def users_info(user: str) -> dict[str, Any]:
        if user not in by_id:
            raise slack_api_error("user_not_found")
        return {"ok": True, "user": by_id[user]}

    return users_info
