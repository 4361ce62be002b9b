"""Display formatting for Slack message timestamps."""

from datetime import datetime, timezone, tzinfo
from typing import Literal, Protocol
from zoneinfo import ZoneInfo

TIME_FORMAT = "%H:%M:%S"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class TimestampFormatter(Protocol):
    """Strategy turning a Slack ts into display text."""

    def format(self, ts: str) -> str: ...


class StrftimeFormatter:
    """Formats a Slack ts with a strftime pattern in a given timezone.

    A ts that is not a number is returned unchanged.
    """

    def __init__(self, pattern: str, tz: tzinfo = timezone.utc) -> None:
        self._pattern = pattern
        self._tz = tz

    def format(self, ts: str) -> str:
        try:
            moment = datetime.fromtimestamp(float(ts), tz=self._tz)
        except (TypeError, ValueError, OverflowError, OSError):
            return ts
        return moment.strftime(self._pattern)


def create_formatter(
    style: Literal["time", "datetime"], tz_name: str = "UTC"
) -> TimestampFormatter:
    """Create the formatter for a configured style.

    Args:
        style: ``time`` for HH:MM:SS, ``datetime`` for full date and time.
        tz_name: IANA timezone name.

    Returns:
        A TimestampFormatter.

    Raises:
        ValueError: If the style is unknown.
        zoneinfo.ZoneInfoNotFoundError: If the timezone does not exist.
    """
    tz: tzinfo = timezone.utc if tz_name == "UTC" else ZoneInfo(tz_name)
    if style == "time":
        return StrftimeFormatter(TIME_FORMAT, tz)
    if style == "datetime":
        return StrftimeFormatter(DATETIME_FORMAT, tz)
    raise ValueError(f"Unknown timestamp style: {style}")
