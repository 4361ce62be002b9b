"""Deep links back to Slack messages."""

SLACK_ARCHIVE_URL = "https://{domain}.slack.com/archives/{channel_id}/p{digits}"


def build_link(domain: str, channel_id: str, timestamp: str) -> str:
    """Build the permalink of a message.

    Slack permalinks use the message ts with its decimal point removed, e.g.
    ``1234567890.000200`` becomes ``p1234567890000200``. Input is not
    validated; a malformed ts yields a malformed link.

    Args:
        domain: Workspace subdomain, may be empty when unresolved.
        channel_id: Channel the message was posted in.
        timestamp: Slack message ts.

    Returns:
        The message URL.
    """
    digits = timestamp.replace(".", "", 1)
    return SLACK_ARCHIVE_URL.format(
        domain=domain, channel_id=channel_id, digits=digits
    )
