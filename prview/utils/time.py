from __future__ import annotations

from datetime import datetime, timezone

# Time conversion constants
SECONDS_PER_MINUTE = 60
MINUTE_PER_HOUR = 60
HOUR_PER_DAY = 24
SECONDS_PER_HOUR = SECONDS_PER_MINUTE * MINUTE_PER_HOUR
SECONDS_PER_DAY = SECONDS_PER_HOUR * HOUR_PER_DAY

# Younger pull requests get a relative date, older ones an absolute one
RELATIVE_DATE_MAX_AGE = 3 * SECONDS_PER_DAY
ABSOLUTE_DATE_FORMAT = "%d-%m-%Y"


def _pluralize(amount: int, unit: str) -> str:
    return f"{amount} {unit}" if amount == 1 else f"{amount} {unit}s"


def format_time_ago(seconds: int) -> str:
    """Convert seconds to a human-readable time-ago phrase.

    Args:
        seconds: Number of seconds ago.

    Returns:
        Human-readable phrase (e.g., "5 minutes ago").
    """
    if seconds < SECONDS_PER_MINUTE:
        return "less than a minute ago"
    if seconds < SECONDS_PER_HOUR:
        minutes = seconds // SECONDS_PER_MINUTE
        return f"{_pluralize(minutes, 'minute')} ago"
    if seconds < SECONDS_PER_DAY:
        hours = seconds // SECONDS_PER_HOUR
        return f"{_pluralize(hours, 'hour')} ago"
    days = seconds // SECONDS_PER_DAY
    return f"{_pluralize(days, 'day')} ago"


def format_created_at(created_at: datetime, now: datetime | None = None) -> str:
    """Render a pull request creation date for the list view.

    Args:
        created_at: Creation timestamp (timezone-aware, as returned by GitHub).
        now: Reference time; defaults to the current UTC time.

    Returns:
        A relative phrase when the pull request is younger than three days,
        otherwise the date as DD-MM-YYYY.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    ago = max(0, int((now - created_at).total_seconds()))
    if ago < RELATIVE_DATE_MAX_AGE:
        return format_time_ago(ago)
    return created_at.strftime(ABSOLUTE_DATE_FORMAT)
