"""Date handling shared by collectors, aggregators and reports.

Stored timestamps are naive UTC. Every grouping converts them to the
configured local timezone and keys them by the local calendar date, so a
meal logged at 23:30 local time belongs to that local day even when its UTC
date is the next one.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from core.config import settings
from core.exceptions import ValidationError

DateLike = Union[datetime, date, str]


def _tz(tz: Optional[ZoneInfo]) -> ZoneInfo:
    return tz or settings.timezone


def parse_timestamp(value: str) -> Union[datetime, date]:
    """Parse an ISO-8601 date or datetime string (a trailing 'Z' is UTC)."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    if len(text) == 10:
        return date.fromisoformat(text)
    return datetime.fromisoformat(text.replace(" ", "T", 1))


def local_date(value: DateLike, tz: Optional[ZoneInfo] = None) -> date:
    """Return the local calendar date of a timestamp.

    Naive datetimes are treated as UTC; plain dates are returned unchanged.
    """
    if isinstance(value, str):
        value = parse_timestamp(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(_tz(tz)).date()
    return value


def as_utc(value: DateLike) -> Optional[datetime]:
    """Aware UTC instant of a timestamp; None for plain dates.

    Naive datetimes are treated as UTC.
    """
    if isinstance(value, str):
        value = parse_timestamp(value)
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_today(tz: Optional[ZoneInfo] = None) -> date:
    return datetime.now(_tz(tz)).date()


def day_keys(start: date, end: date) -> List[date]:
    """Every calendar day from `start` to `end`, inclusive."""
    if end < start:
        return []
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


@dataclass(frozen=True)
class DateRange:
    """Inclusive window of local calendar days."""

    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValidationError("End date must not be before start date", field="data_fim")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def previous(self) -> "DateRange":
        """The window of equal length that ends the day before this one starts."""
        end = self.start - timedelta(days=1)
        return DateRange(end - timedelta(days=self.days - 1), end)


def last_n_days(n: int, tz: Optional[ZoneInfo] = None) -> DateRange:
    """Window of `n` local days ending today."""
    if n < 1:
        raise ValidationError("Window must span at least one day", field="days")
    today = local_today(tz)
    return DateRange(today - timedelta(days=n - 1), today)


def utc_bounds(date_range: DateRange, tz: Optional[ZoneInfo] = None) -> Tuple[datetime, datetime]:
    """Naive UTC `[start, end)` covering the local days of `date_range`."""
    zone = _tz(tz)
    start_local = datetime.combine(date_range.start, time.min, tzinfo=zone)
    end_local = datetime.combine(date_range.end + timedelta(days=1), time.min, tzinfo=zone)
    return (
        start_local.astimezone(timezone.utc).replace(tzinfo=None),
        end_local.astimezone(timezone.utc).replace(tzinfo=None),
    )


def utcnow() -> datetime:
    """Current time as naive UTC, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
