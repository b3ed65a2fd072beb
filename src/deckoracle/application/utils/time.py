"""Clock and calendar helpers shared by the study core and analytics."""

from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_timezone(name: str) -> tzinfo:
    """Resolve an IANA timezone name (raises ZoneInfoNotFoundError if unknown)."""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def is_aware(moment: datetime) -> bool:
    return moment.tzinfo is not None and moment.tzinfo.utcoffset(moment) is not None


def local_day(moment: datetime, tz: tzinfo) -> date:
    """Calendar date of an aware timestamp in the reporting timezone."""
    return moment.astimezone(tz).date()


def week_start(day: date) -> date:
    """Monday of the ISO week containing day."""
    return day - timedelta(days=day.isoweekday() - 1)


def iter_days(first: date, last: date):
    """Every day from first to last inclusive; safe up to date.max."""
    for offset in range((last - first).days + 1):
        yield first + timedelta(days=offset)
