from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, timedelta

from productivity.errors import InvalidWindowError


@dataclass(frozen=True)
class WeekSegment:
    start_date: date
    end_date: date
    iso_week_start: date
    iso_week_end: date

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @property
    def is_full_week(self) -> bool:
        return self.start_date == self.iso_week_start and self.end_date == self.iso_week_end


def monday_of(day: date) -> date:
    return day - timedelta(days=day.weekday())


def sunday_of(day: date) -> date:
    return monday_of(day) + timedelta(days=6)


def is_single_week(start_date: date, end_date: date) -> bool:
    return start_date.weekday() == 0 and end_date == start_date + timedelta(days=6)


class WeekSegments:
    """Monday-Sunday weeks covering [start_date, end_date], first and last clipped.

    Iterating twice yields the same segments; nothing is materialized up front.
    """

    def __init__(self, start_date: date, end_date: date):
        if end_date < start_date:
            raise InvalidWindowError("end_date must be greater than or equal to start_date")
        self.start_date = start_date
        self.end_date = end_date

    def __iter__(self) -> Iterator[WeekSegment]:
        week_start = monday_of(self.start_date)
        while week_start <= self.end_date:
            week_end = week_start + timedelta(days=6)
            yield WeekSegment(
                start_date=max(week_start, self.start_date),
                end_date=min(week_end, self.end_date),
                iso_week_start=week_start,
                iso_week_end=week_end,
            )
            week_start += timedelta(days=7)

    def __len__(self) -> int:
        return (monday_of(self.end_date) - monday_of(self.start_date)).days // 7 + 1


def iter_week_segments(start_date: date, end_date: date) -> WeekSegments:
    return WeekSegments(start_date, end_date)
