"""Helpers for Slack message timestamps.

Slack identifies messages by a ``"<seconds>.<micros>"`` string which is
unique per channel. These helpers convert it for ordering, storage and
JST display.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation

JST = timezone(timedelta(hours=9), "JST")


def parse_ts(ts: str) -> datetime:
    """Parse a Slack timestamp into an aware UTC datetime.

    Raises:
        ValueError: If the string is not a Slack timestamp.
    """
    try:
        value = Decimal(ts)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Invalid Slack timestamp: {ts!r}") from e
    if not value.is_finite():
        raise ValueError(f"Invalid Slack timestamp: {ts!r}")

    seconds = int(value)
    micros = int((value - seconds) * 1_000_000)
    return datetime.fromtimestamp(seconds, tz=timezone.utc) + timedelta(
        microseconds=micros
    )


def ts_from_datetime(moment: datetime) -> str:
    """Format a datetime as a Slack ``oldest`` bound with microsecond precision."""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return f"{moment.timestamp():.6f}"


def format_jst(ts: str) -> str:
    """Render a Slack timestamp as ``YYYY-MM-DD HH:MM:SS JST``.

    Returns "unknown time" for unparseable timestamps.
    """
    try:
        moment = parse_ts(ts)
    except ValueError:
        return "unknown time"
    return moment.astimezone(JST).strftime("%Y-%m-%d %H:%M:%S JST")


def sort_key(ts: str) -> tuple[int, Decimal, str]:
    """Ordering key for timestamps: numeric when valid, oldest otherwise."""
    try:
        value = Decimal(ts)
        if value.is_finite():
            return (1, value, ts)
    except (InvalidOperation, TypeError):
        pass
    return (0, Decimal(0), ts)


def fallback_permalink(channel_id: str, ts: str) -> str:
    """Build the archive URL used when chat.getPermalink fails."""
    return f"https://slack.com/archives/{channel_id}/p{ts.replace('.', '', 1)}"
