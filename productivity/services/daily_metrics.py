from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol

BILLABLE = "billable"
NON_BILLABLE = "non-billable"
UNCATEGORIZED = "uncategorized"


@dataclass(frozen=True)
class CategoryHours:
    category_id: int | None
    category_name: str
    hours: float


@dataclass(frozen=True)
class DailySummary:
    worker_id: int
    day: date
    billable_hours: float = 0.0
    non_billable_hours: float = 0.0
    uncategorized_hours: float = 0.0
    entry_count: int = 0
    categories: tuple[CategoryHours, ...] = ()

    @property
    def total_hours(self) -> float:
        return self.billable_hours + self.non_billable_hours + self.uncategorized_hours


@dataclass(frozen=True)
class DailyMetrics:
    billable_hours: float = 0.0
    non_billable_hours: float = 0.0
    total_hours: float = 0.0
    entry_count: int = 0

    def __add__(self, other: DailyMetrics) -> DailyMetrics:
        return DailyMetrics(
            billable_hours=self.billable_hours + other.billable_hours,
            non_billable_hours=self.non_billable_hours + other.non_billable_hours,
            total_hours=self.total_hours + other.total_hours,
            entry_count=self.entry_count + other.entry_count,
        )


@dataclass(frozen=True)
class DayMetrics:
    day: date
    billable_hours: float
    non_billable_hours: float
    total_hours: float
    entry_count: int

    @property
    def day_name(self) -> str:
        return self.day.strftime("%A")

    @property
    def is_weekend(self) -> bool:
        return self.day.weekday() >= 5


class DailyMetricsReader(Protocol):
    def get_daily_metrics(self, worker_id: int, start_date: date, end_date: date) -> DailyMetrics: ...

    def get_category_breakdown(
        self,
        worker_id: int,
        start_date: date,
        end_date: date,
    ) -> list[CategoryHours]: ...

    def get_daily_breakdown(self, worker_id: int, start_date: date, end_date: date) -> list[DayMetrics]: ...


def classify_category_type(category_type: str | None) -> str:
    """Bucket a raw category type into billable, non-billable or uncategorized."""
    raw = (category_type or "").strip().lower()
    if not raw or raw == UNCATEGORIZED:
        return UNCATEGORIZED
    # "non-billable" contains "billable", so it has to be checked first.
    if "non-billable" in raw or "non_billable" in raw or "nonbillable" in raw:
        return NON_BILLABLE
    if raw.startswith("billable"):
        return BILLABLE
    return UNCATEGORIZED


def _in_window(rows: Iterable[DailySummary], start_date: date, end_date: date) -> list[DailySummary]:
    return [row for row in rows if start_date <= row.day <= end_date]


def aggregate_daily_metrics(
    rows: Iterable[DailySummary],
    start_date: date,
    end_date: date,
) -> DailyMetrics:
    billable = 0.0
    non_billable = 0.0
    total = 0.0
    entries = 0
    for row in _in_window(rows, start_date, end_date):
        billable += row.billable_hours
        non_billable += row.non_billable_hours
        total += row.total_hours
        entries += row.entry_count
    return DailyMetrics(
        billable_hours=billable,
        non_billable_hours=non_billable,
        total_hours=total,
        entry_count=entries,
    )


def merge_category_hours(breakdowns: Iterable[Iterable[CategoryHours]]) -> list[CategoryHours]:
    hours_by_key: dict[int | None, float] = defaultdict(float)
    names: dict[int | None, str] = {}
    for breakdown in breakdowns:
        for item in breakdown:
            hours_by_key[item.category_id] += item.hours
            names.setdefault(item.category_id, item.category_name)

    merged = [
        CategoryHours(category_id=key, category_name=names[key], hours=hours)
        for key, hours in hours_by_key.items()
    ]
    merged.sort(key=lambda item: (-item.hours, item.category_name))
    return merged


def aggregate_categories(
    rows: Iterable[DailySummary],
    start_date: date,
    end_date: date,
) -> list[CategoryHours]:
    return merge_category_hours(row.categories for row in _in_window(rows, start_date, end_date))


def daily_breakdown(
    rows: Iterable[DailySummary],
    start_date: date,
    end_date: date,
) -> list[DayMetrics]:
    """One entry per calendar day of the window, zero-filled where nothing was logged."""
    by_day: dict[date, list[DailySummary]] = defaultdict(list)
    for row in _in_window(rows, start_date, end_date):
        by_day[row.day].append(row)

    days: list[DayMetrics] = []
    cursor = start_date
    while cursor <= end_date:
        metrics = aggregate_daily_metrics(by_day.get(cursor, []), cursor, cursor)
        days.append(
            DayMetrics(
                day=cursor,
                billable_hours=metrics.billable_hours,
                non_billable_hours=metrics.non_billable_hours,
                total_hours=metrics.total_hours,
                entry_count=metrics.entry_count,
            )
        )
        cursor += timedelta(days=1)
    return days


class SummaryRowsReader:
    """DailyMetricsReader over summary rows already held in memory."""

    def __init__(self, rows: Iterable[DailySummary] = ()):
        self._rows_by_worker: dict[int, list[DailySummary]] = defaultdict(list)
        for row in rows:
            self._rows_by_worker[row.worker_id].append(row)

    def get_daily_metrics(self, worker_id: int, start_date: date, end_date: date) -> DailyMetrics:
        return aggregate_daily_metrics(self._rows_by_worker.get(worker_id, []), start_date, end_date)

    def get_category_breakdown(
        self,
        worker_id: int,
        start_date: date,
        end_date: date,
    ) -> list[CategoryHours]:
        return aggregate_categories(self._rows_by_worker.get(worker_id, []), start_date, end_date)

    def get_daily_breakdown(self, worker_id: int, start_date: date, end_date: date) -> list[DayMetrics]:
        return daily_breakdown(self._rows_by_worker.get(worker_id, []), start_date, end_date)
