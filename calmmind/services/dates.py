# calendar helpers — daily rollups are keyed by the user's local calendar day

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from calmmind.config import settings


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def local_date(moment: datetime) -> str:
    """iso calendar day of a utc timestamp in the configured user timezone"""
    return moment.astimezone(ZoneInfo(settings.USER_TIMEZONE)).date().isoformat()


def local_today() -> str:
    return local_date(now_utc())


def start_of_week(day: date) -> date:
    """monday of the week containing day"""
    return day - timedelta(days=day.weekday())


def date_range(start: str, end: str) -> list[str]:
    """inclusive list of iso days between start and end"""
    first = date.fromisoformat(start)
    last = date.fromisoformat(end)
    days = []
    current = first
    while current <= last:
        days.append(current.isoformat())
        current += timedelta(days=1)
    return days
