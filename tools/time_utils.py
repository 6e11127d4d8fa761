"""
Time Utilities
Conversions between instants, local calendar dates and "HH:MM" strings
"""

import logging
import os
import re
from datetime import datetime, date, time, timedelta, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import settings
from exceptions import InvalidRuleError


logger = logging.getLogger(__name__)

Instant = Union[datetime, int, float]

_HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

_LOCALTIME_PATH = "/etc/localtime"
_ZONEINFO_MARKER = "zoneinfo/"


def _host_zone_name() -> Optional[str]:
    """IANA name of the host zone, from TZ or the /etc/localtime link"""
    name = os.environ.get("TZ", "").lstrip(":")
    if name:
        return name
    target = os.path.realpath(_LOCALTIME_PATH)
    if _ZONEINFO_MARKER in target:
        return target.split(_ZONEINFO_MARKER, 1)[1]
    return None


def get_local_timezone() -> tzinfo:
    """
    Resolve the local zone as an IANA zone.

    Order: configured TIMEZONE, the host zone, then UTC.
    """
    for name in (settings.TIMEZONE, _host_zone_name()):
        if not name:
            continue
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            logger.warning(f"Unknown time zone {name!r}: {e}")
    return ZoneInfo("UTC")


def now(tz: Optional[tzinfo] = None) -> datetime:
    """Current wall-clock instant, aware, in the local zone"""
    return datetime.now(tz or get_local_timezone())


def to_epoch_ms(instant: datetime) -> int:
    return int(instant.timestamp() * 1000)


def from_epoch_ms(value: Union[int, float], tz: Optional[tzinfo] = None) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz or get_local_timezone())


def _as_local(instant: Instant, tz: Optional[tzinfo]) -> datetime:
    tz = tz or get_local_timezone()
    if isinstance(instant, datetime):
        if instant.tzinfo is None:
            return instant.replace(tzinfo=tz)
        return instant.astimezone(tz)
    return from_epoch_ms(instant, tz)


def is_valid_hhmm(value: str) -> bool:
    """True for zero-padded 24-hour strings 00:00 through 23:59"""
    return isinstance(value, str) and bool(_HHMM_PATTERN.match(value))


def parse_hhmm(value: str) -> time:
    """Parse "HH:MM" into a time, raising InvalidRuleError when malformed"""
    match = _HHMM_PATTERN.match(value) if isinstance(value, str) else None
    if not match:
        raise InvalidRuleError(f"Invalid HH:MM time: {value!r}")
    return time(int(match.group(1)), int(match.group(2)))


def to_local_hhmm(instant: Instant, tz: Optional[tzinfo] = None) -> str:
    """Format an instant as zero-padded 24-hour local "HH:MM" """
    return _as_local(instant, tz).strftime("%H:%M")


def local_date_of(instant: Instant, tz: Optional[tzinfo] = None) -> date:
    """Local calendar date of an instant"""
    return _as_local(instant, tz).date()


def parse_hhmm_on_date(
    value: str,
    day: Union[date, datetime],
    tz: Optional[tzinfo] = None
) -> datetime:
    """
    Combine an "HH:MM" string with a calendar date in the local zone.

    Args:
        value: Time of day, "HH:MM"
        day: Calendar date, or an instant whose local date is used
        tz: Local zone (default: configured zone)

    Returns:
        Aware datetime with seconds and microseconds zeroed
    """
    tz = tz or get_local_timezone()
    if isinstance(day, datetime):
        day = local_date_of(day, tz)
    return datetime.combine(day, parse_hhmm(value), tzinfo=tz)


def add_hours(instant: datetime, hours: int) -> datetime:
    """Advance by elapsed hours (through UTC), keeping the instant's zone"""
    return (instant.astimezone(timezone.utc) + timedelta(hours=hours)).astimezone(instant.tzinfo)


def today_date_key(current: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> str:
    """Local calendar date as "YYYY-MM-DD" """
    current = _as_local(current, tz) if current is not None else now(tz)
    return current.date().isoformat()


def days_between(start: date, end: date):
    """Yield every calendar date from start through end, inclusive"""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)
