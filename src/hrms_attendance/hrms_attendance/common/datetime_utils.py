from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Iterable, Iterator, Optional
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_TIMEZONE, DEFAULT_WEEKEND_DAYS
from ..core.exceptions import ValidationError

_HHMM = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def parse_hhmm(value: str) -> time:
    """Parse a 24-hour HH:MM string into a time."""
    m = _HHMM.match((value or "").strip())
    if not m:
        raise ValidationError(f"Time must be in HH:MM format (24-hour): {value!r}")
    return time(hour=int(m.group(1)), minute=int(m.group(2)))


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def format_12h(value: time) -> str:
    hour = value.hour % 12 or 12
    suffix = "PM" if value.hour >= 12 else "AM"
    return f"{hour}:{value.minute:02d} {suffix}"


def whole_minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def daterange(start: date, end: date) -> Iterator[date]:
    """Inclusive range of calendar dates."""
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


def to_storage(value: Optional[datetime]) -> Optional[datetime]:
    """Aware instant -> naive UTC (DATETIME column)."""
    if value is None:
        return None
    if value.tzinfo is None:
        raise ValueError("Refusing to store a naive datetime")
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_storage(value: Optional[datetime], tz: ZoneInfo) -> Optional[datetime]:
    """Naive UTC (DATETIME column) -> aware instant in the reference zone."""
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc).astimezone(tz)


@dataclass(frozen=True)
class WorkCalendar:
    """Day-boundary arithmetic in a single reference timezone.

    Every "today" in the system is computed here so that check-in, the absence
    job and leave reconciliation agree regardless of the host's local zone.
    """

    tz: ZoneInfo = field(default_factory=lambda: ZoneInfo(DEFAULT_TIMEZONE))
    weekend_days: frozenset[int] = frozenset(DEFAULT_WEEKEND_DAYS)

    @classmethod
    def from_settings(cls, tz_name: str, weekend_days: Iterable[int]) -> "WorkCalendar":
        return cls(tz=ZoneInfo(tz_name), weekend_days=frozenset(int(d) for d in weekend_days))

    def localize(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=self.tz)
        return value.astimezone(self.tz)

    def local_date(self, instant: datetime) -> date:
        return self.localize(instant).date()

    def at(self, day: date, t: time) -> datetime:
        """The instant for wall-clock time ``t`` on ``day`` in the reference zone."""
        return datetime.combine(day, t, tzinfo=self.tz)

    def is_weekend(self, day: date) -> bool:
        return day.weekday() in self.weekend_days

    def working_days(self, start: date, end: date) -> list[date]:
        return [d for d in daterange(start, end) if not self.is_weekend(d)]


class Clock:
    """Current-time source in the reference timezone.

    Wrapped so tests can inject a fixed or stepping clock.
    """

    def __init__(self, calendar: WorkCalendar, *, source: Optional[Callable[[], datetime]] = None):
        self._calendar = calendar
        self._source = source or (lambda: datetime.now(timezone.utc))

    @property
    def calendar(self) -> WorkCalendar:
        return self._calendar

    def now(self) -> datetime:
        return self._calendar.localize(self._source())

    def today(self) -> date:
        return self.now().date()
