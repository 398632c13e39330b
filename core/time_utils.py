"""Time zone helpers for the fixed service time zone"""

from datetime import datetime, timezone

import pytz

from config.settings import settings

# Raises pytz.UnknownTimeZoneError at import, which stops the process on startup
BERLIN_TZ = pytz.timezone(settings.TIMEZONE_NAME)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def from_unix_timestamp(timestamp: int) -> datetime:
    """Convert a Unix epoch second count to an aware datetime in the service time zone"""
    return datetime.fromtimestamp(timestamp, tz=pytz.utc).astimezone(BERLIN_TZ)


def to_service_time(value: datetime) -> datetime:
    return value.astimezone(BERLIN_TZ)


def format_utc(value: datetime) -> str:
    """Format as YYYY-MM-DDTHH:MM:SSZ in UTC"""
    return value.astimezone(timezone.utc).replace(microsecond=0).strftime('%Y-%m-%dT%H:%M:%SZ')


def format_service_time(value: datetime) -> str:
    """Format as ISO-8601 with the service time zone offset, e.g. 2026-10-20T09:30:00+02:00"""
    return to_service_time(value).replace(microsecond=0).isoformat()


def first_day_of_next_month(today: datetime) -> datetime:
    """Midnight in the service time zone on the first day of the month after ``today``"""
    local_today = to_service_time(today)
    if local_today.month == 12:
        year, month = local_today.year + 1, 1
    else:
        year, month = local_today.year, local_today.month + 1
    return BERLIN_TZ.localize(datetime(year, month, 1))
