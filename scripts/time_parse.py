from datetime import date, datetime
from typing import Optional, Tuple
import re

from services.errors import InvalidInputError

MINUTES_PER_DAY = 24 * 60

SLOT_LABEL_PATTERN = re.compile(
    r"^\s*(\d{1,2}):(\d{2})\s*([ap]m)\s*-\s*(\d{1,2}):(\d{2})\s*([ap]m)\s*$",
    re.IGNORECASE
)


def parse_time_str(t: str) -> int:
    """Parse an 'HH:MM' 24-hour string into minutes since midnight."""
    if not isinstance(t, str):
        raise InvalidInputError(f"Invalid time of day: {t!r}")
    try:
        parsed = datetime.strptime(t.strip(), "%H:%M").time()
    except ValueError:
        raise InvalidInputError(f"Invalid time of day: {t!r}. Use HH:MM")
    return parsed.hour * 60 + parsed.minute


def format_time_str(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_12h(minutes: int) -> str:
    hour, minute = divmod(minutes % MINUTES_PER_DAY, 60)
    suffix = "am" if hour < 12 else "pm"
    return f"{hour % 12 or 12:02d}:{minute:02d} {suffix}"


def render_slot_label(start_minute: int, end_minute: int) -> str:
    """Canonical label, e.g. '09:00 am - 11:00 am'."""
    return f"{format_12h(start_minute)} - {format_12h(end_minute)}"


def _to_minutes(hour: str, minute: str, suffix: str) -> Optional[int]:
    h, m = int(hour), int(minute)
    if not 1 <= h <= 12 or not 0 <= m <= 59:
        return None
    h = h % 12
    if suffix.lower() == "pm":
        h += 12
    return h * 60 + m


def parse_slot_label(label: str) -> Optional[Tuple[int, int]]:
    """Recover (start_minute, end_minute) from a rendered label, None if unparsable."""
    if not isinstance(label, str):
        return None
    match = SLOT_LABEL_PATTERN.match(label)
    if not match:
        return None
    start = _to_minutes(*match.group(1, 2, 3))
    end = _to_minutes(*match.group(4, 5, 6))
    if start is None or end is None or end <= start:
        return None
    return start, end


def parse_booking_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise InvalidInputError("Invalid date format. Use YYYY-MM-DD")
