# spoton/services/time_window.py
"""
TimeWindow value type and the interval-overlap predicate.

Windows are half-open [start, end) on a single date: one booking ending at
10:00 and another starting at 10:00 do NOT overlap. This module holds the
only overlap formula; the SQL filters in availability_service and
booking_service express the same comparison.
"""

from dataclasses import dataclass
from datetime import date, time, datetime
from typing import Union
from spoton.services.errors import InvalidInput

DateLike = Union[date, str]
TimeLike = Union[time, str]

TIME_FORMATS = ("%H:%M", "%H:%M:%S")


def _parse_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidInput(f"Invalid date '{value}': expected YYYY-MM-DD") from None


def _parse_time(value: TimeLike) -> time:
    if isinstance(value, time):
        return value
    text = str(value).strip()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise InvalidInput(f"Invalid time '{value}': expected HH:MM")


@dataclass(frozen=True)
class TimeWindow:
    date: date
    start: time
    end: time

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidInput(
                f"Start time {self.start:%H:%M} must be before end time {self.end:%H:%M}"
            )

    @classmethod
    def parse(cls, day: DateLike, start: TimeLike, end: TimeLike) -> "TimeWindow":
        return cls(_parse_date(day), _parse_time(start), _parse_time(end))

    @property
    def start_at(self) -> datetime:
        return datetime.combine(self.date, self.start)

    @property
    def end_at(self) -> datetime:
        return datetime.combine(self.date, self.end)

    def contains(self, moment: datetime) -> bool:
        return moment.date() == self.date and self.start <= moment.time() < self.end

    def __str__(self):
        return f"{self.date.isoformat()} {self.start:%H:%M}-{self.end:%H:%M}"


def overlaps(a: TimeWindow, b: TimeWindow) -> bool:
    """True iff the windows share at least one instant (half-open intervals)."""
    return a.date == b.date and a.start < b.end and b.start < a.end


def booking_window(booking) -> TimeWindow:
    """TimeWindow of a persisted Booking row."""
    return TimeWindow(booking.date, booking.start_time, booking.end_time)
