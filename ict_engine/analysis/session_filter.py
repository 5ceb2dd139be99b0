"""Session filter: checks whether a UTC time falls in a London or NY kill zone."""

from datetime import datetime, timedelta, timezone
from typing import Literal

from ict_engine.analysis.models import InstrumentType

SessionName = Literal["london-open", "ny-kill-zone", "asian-range", "outside-session"]

# Minutes after 00:00 UTC, both ends inclusive.
LONDON_OPEN = (8 * 60, 12 * 60)
NY_KILL_ZONE = (13 * 60, 16 * 60)
ASIAN_RANGE_END = 8 * 60


def _minute_of_day(now: datetime) -> int:
    utc = now.astimezone(timezone.utc) if now.tzinfo else now
    return utc.hour * 60 + utc.minute


def is_in_session(minute_of_day: int, session_start: int, session_end: int) -> bool:
    """Return True if *minute_of_day* falls within the session window.

    Args:
        minute_of_day: Minutes after midnight UTC (0 to 1439).
        session_start: Session start minute (inclusive).
        session_end: Session end minute (inclusive).
    """
    return session_start <= minute_of_day <= session_end


def is_valid_session_time(now: datetime, instrument_type: InstrumentType) -> bool:
    """Synthetic instruments trade around the clock; forex needs London or NY.

    Naive datetimes are treated as UTC.
    """
    if instrument_type == "synthetic":
        return True
    minute = _minute_of_day(now)
    return is_in_session(minute, *LONDON_OPEN) or is_in_session(minute, *NY_KILL_ZONE)


def get_current_session(now: datetime) -> SessionName:
    minute = _minute_of_day(now)
    if is_in_session(minute, *LONDON_OPEN):
        return "london-open"
    if is_in_session(minute, *NY_KILL_ZONE):
        return "ny-kill-zone"
    if minute < ASIAN_RANGE_END:
        return "asian-range"
    return "outside-session"


def get_next_session_start(now: datetime) -> datetime:
    """Start of the next London or NY window, rolling to tomorrow after 13:00 UTC."""
    utc = now.astimezone(timezone.utc) if now.tzinfo else now
    minute = utc.hour * 60 + utc.minute
    midnight = utc.replace(hour=0, minute=0, second=0, microsecond=0)
    if minute < LONDON_OPEN[0]:
        return midnight + timedelta(minutes=LONDON_OPEN[0])
    if minute < NY_KILL_ZONE[0]:
        return midnight + timedelta(minutes=NY_KILL_ZONE[0])
    return midnight + timedelta(days=1, minutes=LONDON_OPEN[0])
