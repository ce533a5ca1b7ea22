"""
Common Value Objects

Value objects used across the package and booking domains:
- CalendarRange: inclusive range of whole dates used by calendar queries
- TimeOfDay: optional wedding time carried as HH:MM
"""

import re
from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Iterator

from shared.domain.base import ValueObject
from shared.domain.exceptions import InvalidDate


@dataclass(frozen=True)
class CalendarRange(ValueObject):
    """
    Calendar range value object

    Represents the dates from start_date to end_date, both inclusive.
    A single-day range has start_date == end_date.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise InvalidDate(
                f"Start date ({self.start_date}) must not be after end date ({self.end_date})"
            )

    @classmethod
    def from_horizon(cls, start_date: date, days_ahead: int) -> 'CalendarRange':
        """Range covering start_date and the following days_ahead days"""
        return cls(start_date, start_date + timedelta(days=max(days_ahead, 0)))

    def capped(self, max_days: int) -> 'CalendarRange':
        """
        Truncate the range to at most max_days dates

        The start date is kept; the end date moves back when the range is
        longer than the cap.
        """
        if max_days < 1 or len(self) <= max_days:
            return self
        return CalendarRange(self.start_date, self.start_date + timedelta(days=max_days - 1))

    def days(self) -> Iterator[date]:
        """Iterate over every date in the range, in order"""
        current = self.start_date
        while current <= self.end_date:
            yield current
            current += timedelta(days=1)

    def __iter__(self) -> Iterator[date]:
        return self.days()

    def __len__(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def __str__(self):
        return f"{self.start_date.isoformat()} .. {self.end_date.isoformat()}"

    def __repr__(self):
        return f"CalendarRange({self.start_date}, {self.end_date})"


_TIME_PATTERN = re.compile(r'^([01]?\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$')


@dataclass(frozen=True)
class TimeOfDay(ValueObject):
    """
    Wedding time value object

    Carried opaquely with a booking; availability is decided per date only.
    """
    value: time

    @classmethod
    def parse(cls, raw) -> 'TimeOfDay | None':
        """
        Build a TimeOfDay from a time, an "HH:MM" string or None

        Raises:
            InvalidDate: If the string is not a valid 24-hour time
        """
        if raw is None or raw == '':
            return None
        if isinstance(raw, time):
            return cls(raw.replace(microsecond=0))
        match = _TIME_PATTERN.match(str(raw).strip())
        if not match:
            raise InvalidDate(f"Wedding time must be in HH:MM format, got {raw!r}")
        hours, minutes, seconds = match.groups()
        return cls(time(int(hours), int(minutes), int(seconds or 0)))

    def __str__(self):
        return self.value.strftime('%H:%M')
