"""Pure slot arithmetic on the canonical (naive UTC) clock.

Nothing here touches storage or reads the wall clock; "now" is always
passed in by the caller.
"""
from datetime import UTC, date, datetime, timedelta

from app.core.config import BusinessCalendar
from app.core.errors import InvalidSlotError


def _naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        dt = dt.astimezone(UTC)
    return dt.replace(tzinfo=None)


def normalize(raw: datetime) -> datetime:
    """Truncate to whole minutes. Hour and minute are left untouched."""
    return _naive_utc(raw).replace(second=0, microsecond=0)


def parse_slot(value: datetime | str) -> datetime:
    """Normalize caller input (ISO-8601 string or datetime) into a slot."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            raise InvalidSlotError(f"Invalid slot format: {value!r}") from None
    try:
        return normalize(value)
    except OverflowError:
        # e.g. 9999-12-31T23:30-01:00 has no representable UTC instant
        raise InvalidSlotError(f"Slot out of range: {value.isoformat()}") from None


def is_valid_business_slot(slot: datetime, calendar: BusinessCalendar) -> bool:
    if slot.hour < calendar.open_hour or slot.hour >= calendar.close_hour:
        return False
    return slot.minute % calendar.slot_interval_minutes == 0


def is_past(slot: datetime, now: datetime) -> bool:
    return slot < now


def is_same_calendar_day(slot: datetime, now: datetime) -> bool:
    return slot.date() == now.date()


def search_origin(now: datetime, calendar: BusinessCalendar) -> datetime:
    """Opening time of the UTC day after ``now``."""
    tomorrow = now.date() + timedelta(days=1)
    return datetime(tomorrow.year, tomorrow.month, tomorrow.day, calendar.open_hour)


def business_slots_for_day(day: date, calendar: BusinessCalendar) -> list[datetime]:
    """Slot starts for the given date, ascending by hour then minute."""
    return [
        datetime(day.year, day.month, day.day, hour, minute)
        for hour in range(calendar.open_hour, calendar.close_hour)
        for minute in calendar.minute_offsets
    ]
