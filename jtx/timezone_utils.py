"""
Timezone utilities for jtx Board.

Records keep every timestamp as milliseconds since the epoch (UTC) next to
an optional timezone label. The label is None for plain UTC values,
ALLDAY for date-only values, or an Olson name such as "Europe/Vienna".
"""

from datetime import datetime, date, timezone as dt_timezone
from typing import Optional, Union
import time as _time
import sys
import pytz


TZ_ALLDAY = "ALLDAY"

# Default timezone - can be overridden by config
_local_timezone_name: str = "UTC"


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] TZ: {msg}", file=sys.stderr)


def set_timezone(timezone_name: str):
    """Set the local timezone for the application."""
    global _local_timezone_name
    _local_timezone_name = timezone_name


def get_local_timezone():
    """Get the configured local timezone as a pytz timezone object."""
    try:
        return pytz.timezone(_local_timezone_name)
    except pytz.UnknownTimeZoneError:
        return pytz.UTC


def now_millis() -> int:
    return int(_time.time() * 1000)


def get_timezone(label: Optional[str]):
    """
    Resolve a timezone label to a pytz timezone.

    None and ALLDAY resolve to UTC. Unknown names fall back to UTC.
    """
    if label is None or label == TZ_ALLDAY:
        return pytz.UTC
    try:
        return pytz.timezone(label)
    except pytz.UnknownTimeZoneError:
        _debug_print(f"Unknown timezone '{label}', using UTC")
        return pytz.UTC


def millis_to_ical_value(millis: int, tz_label: Optional[str] = None) -> Union[datetime, date]:
    """
    Convert a stored timestamp to the value handed to icalendar.

    ALLDAY gives a date, a named zone gives an aware datetime in that zone
    and no label gives an aware UTC datetime.
    """
    utc_dt = datetime.fromtimestamp(millis / 1000, tz=pytz.UTC)
    if tz_label == TZ_ALLDAY:
        return utc_dt.date()
    if tz_label is None:
        return utc_dt
    return utc_dt.astimezone(get_timezone(tz_label))


def ical_value_to_millis(value: Union[datetime, date]) -> tuple[int, Optional[str]]:
    """
    Convert an icalendar date/datetime back to (millis, timezone label).

    Floating datetimes are interpreted in the configured local timezone.
    """
    if not isinstance(value, datetime):
        midnight = datetime(value.year, value.month, value.day, tzinfo=pytz.UTC)
        return int(midnight.timestamp() * 1000), TZ_ALLDAY

    if value.tzinfo is None:
        value = get_local_timezone().localize(value)
        return int(value.timestamp() * 1000), None

    millis = int(value.timestamp() * 1000)
    label = timezone_label(value.tzinfo)
    return millis, label


def timezone_label(tzinfo) -> Optional[str]:
    """Get the label to store for a tzinfo; UTC maps to None."""
    if tzinfo is None or tzinfo is pytz.UTC or tzinfo is dt_timezone.utc:
        return None
    zone = getattr(tzinfo, 'zone', None) or getattr(tzinfo, 'key', None)
    if zone in (None, "UTC", "Etc/UTC"):
        return None
    return zone


def millis_to_utc_datetime(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=pytz.UTC)


def datetime_to_millis(dt: datetime) -> int:
    """Convert a datetime to milliseconds; naive values are taken as UTC."""
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return int(dt.timestamp() * 1000)
