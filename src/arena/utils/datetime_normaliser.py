from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo


def from_iso_string(value: str) -> datetime:
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        raise ValueError("Stored datetime must be timezone-aware")
    return dt.astimezone(timezone.utc)


def to_iso_string(value: datetime) -> str:
    if value.tzinfo is None:
        raise ValueError("Datetime must be timezone-aware")
    return value.astimezone(timezone.utc).isoformat()


def slot_start(booking_date: date, hour: int, tz_name: str = "UTC") -> datetime:
    """Start of an hour slot in the venue's timezone, normalised to UTC."""
    local = datetime.combine(booking_date, time(hour=hour), tzinfo=ZoneInfo(tz_name))
    return local.astimezone(timezone.utc)
