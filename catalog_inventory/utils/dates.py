"""
Date range parsing for ledger queries and movement reports.
All comparisons happen in UTC; naive values are taken to be UTC already.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple, Optional, Union

from catalog_inventory.exceptions import InvalidArgumentError

DateInput = Union[str, date, datetime, None]

class DateRange(NamedTuple):
    start: Optional[datetime]
    end: Optional[datetime]

def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def _parse(value: DateInput, field: str) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        raw = value.strip()
        try:
            if len(raw) == 10:
                return datetime.combine(date.fromisoformat(raw), time.min, tzinfo=timezone.utc)
            # fromisoformat on older interpreters does not accept a trailing Z
            return to_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))
        except ValueError:
            raise InvalidArgumentError(f"Invalid {field}: {value!r}", field=field)
    raise InvalidArgumentError(f"Invalid {field}: {value!r}", field=field)

def end_of_day(value: datetime) -> datetime:
    """Last instant of the calendar day of ``value``."""
    return datetime.combine(value.date(), time.max, tzinfo=timezone.utc)

def parse_date_range(start_date: DateInput = None, end_date: DateInput = None) -> DateRange:
    """
    Inclusive range; the end is pushed to 23:59:59.999999 of its day.
    """
    start = _parse(start_date, "startDate")
    end = _parse(end_date, "endDate")
    if end is not None:
        end = end_of_day(end)
    if start is not None and end is not None and start > end:
        raise InvalidArgumentError("startDate must not be after endDate", field="startDate")
    return DateRange(start, end)

def default_movement_range(days: int, now: Optional[datetime] = None) -> DateRange:
    now = to_utc(now) if now else datetime.now(timezone.utc)
    return DateRange(now - timedelta(days=days), end_of_day(now))
