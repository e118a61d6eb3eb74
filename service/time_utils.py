"""
Time arithmetic shared by the schedulers.

Times are "HH:MM" strings on the wire and minutes since midnight inside the
packers. Single-digit hours ("9:00") are accepted on input and come back
zero-padded ("09:00"), so only the two-digit form round-trips unchanged.
Weekdays follow the 0=Sunday .. 6=Saturday convention used by the
exclude-days preference.
"""
import re
from datetime import date, datetime, timedelta
from typing import List, Union

from service.exceptions import InvalidTimeError

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
MINUTES_PER_DAY = 24 * 60


def is_valid_time(value: str) -> bool:
    """Check a string is a 24-hour HH:MM time."""
    return isinstance(value, str) and TIME_PATTERN.match(value) is not None


def time_to_minutes(value: str) -> int:
    """
    Parse an HH:MM string into minutes since midnight.

    Raises:
        InvalidTimeError: if the string is not a valid 24-hour time
    """
    if not isinstance(value, str):
        raise InvalidTimeError(f"Invalid time value: {value!r}")
    match = TIME_PATTERN.match(value)
    if match is None:
        raise InvalidTimeError(f"Invalid time format '{value}'. Use HH:MM format (e.g., '09:00')")
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time(total_minutes: int) -> str:
    """Convert minutes since midnight to an HH:MM string (hours wrap at 24)."""
    hours = (total_minutes // 60) % 24
    minutes = total_minutes % 60
    return f"{hours:02d}:{minutes:02d}"


def get_week_start(value: Union[date, datetime, None] = None) -> date:
    """Return the Monday of the week containing the given day (today by default)."""
    if value is None:
        value = date.today()
    if isinstance(value, datetime):
        value = value.date()
    return value - timedelta(days=value.weekday())


def weekday_index(day: date) -> int:
    """Weekday with Sunday as 0."""
    return (day.weekday() + 1) % 7


def date_range(start: date, end: date) -> List[date]:
    """All days from start to end, inclusive. Empty when end < start."""
    days = []
    current = start
    while current <= end:
        days.append(current)
        current += timedelta(days=1)
    return days


def format_duration(minutes: int) -> str:
    """Format a duration as 'Xh Ymin'."""
    hours = minutes // 60
    rest = minutes % 60

    if hours > 0 and rest > 0:
        return f"{hours}h {rest}min"
    elif hours > 0:
        return f"{hours}h"
    else:
        return f"{rest}min"
