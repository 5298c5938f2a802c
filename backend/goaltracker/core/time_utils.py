import calendar
import time
from datetime import date, datetime, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """ISO-8601 timestamp for created_at / completed_at fields."""
    return now_utc().isoformat()


def today_iso() -> str:
    return date.today().isoformat()


def timestamp_id() -> int:
    """Millisecond timestamp used as an id for records created without the remote db."""
    return int(time.time() * 1000)


def add_months(d: date, months: int) -> date:
    """
    Shift a date by whole months, clamping to the last day of the target month.
    Example: add_months(date(2025, 1, 31), 1) -> date(2025, 2, 28)
    """
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def time_of_day(dt: datetime) -> str:
    """'morning' before noon, 'afternoon' before 17:00, otherwise 'evening'."""
    if dt.hour < 12:
        return "morning"
    if dt.hour < 17:
        return "afternoon"
    return "evening"


def season_of(d: date) -> str:
    """Northern hemisphere meteorological season for a date."""
    if 3 <= d.month <= 5:
        return "spring"
    if 6 <= d.month <= 8:
        return "summer"
    if 9 <= d.month <= 11:
        return "fall"
    return "winter"


def hhmm_to_time(hhmm: str):
    """Parse time strings into datetime.time.

    Accepts common formats:
      - 'HH:MM' (24h)
      - 'HH:MM:SS' (24h)
      - 'H:MM AM/PM' (12h), case-insensitive
      - 'H AM/PM'

    Returns None for empty strings.
    """
    if hhmm is None:
        return None
    s = hhmm.strip()
    if s == "":
        return None

    candidates = [
        "%H:%M",
        "%H:%M:%S",
        "%I:%M %p",
        "%I %p",
    ]
    for fmt in candidates:
        try:
            return datetime.strptime(s, fmt).time()
        except ValueError:
            continue
    raise ValueError("Reminder time must be in formats like 'HH:MM' or '7:30 AM'")


def time_to_hhmm(t) -> str | None:
    """Format datetime.time -> 'HH:MM'. Returns None if t is None."""
    if t is None:
        return None
    return f"{t.hour:02d}:{t.minute:02d}"


def parse_day(value) -> date | None:
    """Accept a date, a datetime or an ISO string ('2025-01-06' or a full timestamp)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None
