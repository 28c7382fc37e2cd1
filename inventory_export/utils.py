import calendar
import re
from datetime import date, datetime, timezone
from urllib.parse import quote
from zoneinfo import ZoneInfo


def today_in_timezone(tz: str = "UTC") -> date:
    """Returns the calendar date it currently is in the given IANA time zone."""
    return datetime.now(ZoneInfo(tz)).date()


def label_for_today(tz: str = "UTC") -> str:
    """Returns today's date in `tz` as a YYYY-MM-DD snapshot label."""
    return today_in_timezone(tz).isoformat()


def is_last_day_of_month(day: date) -> bool:
    return day.day == calendar.monthrange(day.year, day.month)[1]


def to_date_only(value: datetime | date | str) -> date:
    """
    Reduces an instant to its calendar date, dropping the time of day.
    The date is taken in the instant's own offset, not converted to UTC first.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(value.strip()).date()


def get_export_stamp(now: datetime | None = None) -> str:
    """Returns a filename-safe UTC timestamp, e.g. '2024-05-01T10-22-03-123456Z'."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S-%fZ")


def safe_base(name: str) -> str:
    """Strips an export identifier down to characters that are safe in a filename."""
    return re.sub(r"[^a-zA-Z0-9._-]", "", str(name))


def label_to_filename(label: str) -> str:
    """
    Maps an arbitrary snapshot label to a single path component.
    Date labels like '2024-05-01' come through unchanged.
    """
    return f"{quote(label, safe='')}.json"


def truncate(text: str | None, limit: int) -> str | None:
    if not text:
        return text
    return text[:limit] + "...(truncated)" if len(text) > limit else text
