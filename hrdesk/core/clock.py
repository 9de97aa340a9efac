"""
Time source for the attendance rules.

All "today" and time-of-day decisions are made in the zone named by
``settings.TIMEZONE``; persisted timestamps are UTC.
"""

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from hrdesk.core.config import settings


def local_tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def parse_hhmm(value: str) -> time:
    """Parse an "HH:MM" or "HH:MM:SS" setting into a time."""
    return time.fromisoformat(value)


def now() -> datetime:
    return datetime.now(local_tz())


def to_local(moment: datetime) -> datetime:
    """Convert an aware datetime to the configured zone (naive ones are taken as local)."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=local_tz())
    return moment.astimezone(local_tz())


def today(moment: datetime | None = None) -> date:
    return to_local(moment or now()).date()


def get_now() -> datetime:
    """FastAPI dependency for the current time; tests override it."""
    return now()
