from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any

from productivity.services.daily_metrics import CategoryHours, DailyMetricsReader, DayMetrics, merge_category_hours
from productivity.services.nad_allocation import NO_LEAVE, LeaveTotals, NadAllocation, allocate_nad
from productivity.services.performance import (
    DEFAULT_THRESHOLDS,
    PerformanceResult,
    PerformanceThresholds,
    classify_performance,
)
from productivity.services.predominance import predominant_region, predominant_work_status
from productivity.services.status_history import build_attribute_periods
from productivity.services.target_hours import TargetHours, calculate_target_hours
from productivity.services.target_rates import TargetRateResolver
from productivity.services.week_alignment import iter_week_segments
from productivity.services.workforce import (
    AttributeChangeRecord,
    AttributeField,
    WorkerProfile,
    work_status_label,
)


def _hours(value: float) -> float:
    return round(value, 2)


def _category_dicts(categories: Iterable[CategoryHours]) -> list[dict[str, Any]]:
    return [
        {
            "category_id": item.category_id,
            "category_name": item.category_name,
            "hours": _hours(item.hours),
        }
        for item in categories
    ]


def _day_dicts(days: Iterable[DayMetrics]) -> list[dict[str, Any]]:
    return [
        {
            "day": item.day.isoformat(),
            "day_name": item.day_name,
            "is_weekend": item.is_weekend,
            "billable_hours": _hours(item.billable_hours),
            "non_billable_hours": _hours(item.non_billable_hours),
            "total_hours": _hours(item.total_hours),
            "entry_count": item.entry_count,
        }
        for item in days
    ]


def _performance_dict(performance: PerformanceResult) -> dict[str, Any]:
    return {
        "percentage": performance.display_percentage,
        "tier": performance.tier.value,
    }


@dataclass(frozen=True)
class WeekBreakdown:
    start_date: date
    end_date: date
    days: int
    billable_hours: float
    non_billable_hours: float
    total_hours: float
    target_hours: float
    nad: NadAllocation
    performance: PerformanceResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "days": self.days,
            "billable_hours": _hours(self.billable_hours),
            "non_billable_hours": _hours(self.non_billable_hours),
            "total_hours": _hours(self.total_hours),
            "target_hours": _hours(self.target_hours),
            "nad_count": self.nad.nad_count,
            "nad_hours": self.nad.nad_hours,
            "performance": _performance_dict(self.performance),
        }


@dataclass(frozen=True)
class ReportRow:
    worker_id: int
    full_name: str
    email: str
    region_id: int | None
    work_status: str
    start_date: date
    end_date: date
    billable_hours: float
    non_billable_hours: float
    total_hours: float
    entry_count: int
    target: TargetHours
    nad: NadAllocation
    performance: PerformanceResult
    categories: tuple[CategoryHours, ...] = ()
    weekly_breakdown: tuple[WeekBreakdown, ...] = ()
    daily_breakdown: tuple[DayMetrics, ...] = ()

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @property
    def work_status_label(self) -> str:
        return work_status_label(self.work_status)

    @property
    def target_total_hours(self) -> float:
        return self.target.target_total_hours

    def to_dict(self) -> dict[str, Any]:
        return {
            "worker_id": self.worker_id,
            "full_name": self.full_name,
            "email": self.email,
            "region_id": self.region_id,
            "work_status": self.work_status,
            "work_status_label": self.work_status_label,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "days": self.days,
            "billable_hours": _hours(self.billable_hours),
            "non_billable_hours": _hours(self.non_billable_hours),
            "total_hours": _hours(self.total_hours),
            "entry_count": self.entry_count,
            "target_total_hours": _hours(self.target.target_total_hours),
            "target_hours_per_week": _hours(self.target.target_hours_per_week),
            "period_weeks": round(self.target.period_weeks, 2),
            "nad_count": self.nad.nad_count,
            "nad_hours": self.nad.nad_hours,
            "performance": _performance_dict(self.performance),
            "categories": _category_dicts(self.categories),
            "weekly_breakdown": [week.to_dict() for week in self.weekly_breakdown],
            "daily_breakdown": _day_dicts(self.daily_breakdown),
        }


@dataclass(frozen=True)
class WorkerReport:
    worker: WorkerProfile
    region_id: int | None
    work_status: str
    rows: tuple[ReportRow, ...]
    categories: tuple[CategoryHours, ...] = ()
    leave: LeaveTotals = NO_LEAVE

    @property
    def billable_hours(self) -> float:
        return sum(row.billable_hours for row in self.rows)

    @property
    def target_total_hours(self) -> float:
        return sum(row.target.target_total_hours for row in self.rows)

    def performance(self, thresholds: PerformanceThresholds = DEFAULT_THRESHOLDS) -> PerformanceResult:
        return classify_performance(self.billable_hours, self.target_total_hours, thresholds)

    def to_dict(self) -> dict[str, Any]:
        return {
            "worker_id": self.worker.id,
            "full_name": self.worker.full_name,
            "email": self.worker.email,
            "job_title": self.worker.job_title,
            "region_id": self.region_id,
            "work_status": self.work_status,
            "work_status_label": work_status_label(self.work_status),
            "billable_hours": _hours(self.billable_hours),
            "non_billable_hours": _hours(sum(row.non_billable_hours for row in self.rows)),
            "total_hours": _hours(sum(row.total_hours for row in self.rows)),
            "target_total_hours": _hours(self.target_total_hours),
            "nad_count": sum(row.nad.nad_count for row in self.rows),
            "nad_hours": _hours(sum(row.nad.nad_hours for row in self.rows)),
            "leave_requests": self.leave.requests,
            "categories": _category_dicts(self.categories),
            "rows": [row.to_dict() for row in self.rows],
        }


def merge_category_breakdowns(rows: Iterable[ReportRow]) -> list[CategoryHours]:
    return merge_category_hours(row.categories for row in rows)


def build_weekly_breakdown(
    worker: WorkerProfile,
    work_status: str,
    start_date: date,
    end_date: date,
    *,
    metrics: DailyMetricsReader,
    rates: TargetRateResolver,
    leave: LeaveTotals,
    window_days: int,
    thresholds: PerformanceThresholds = DEFAULT_THRESHOLDS,
) -> list[WeekBreakdown]:
    weeks: list[WeekBreakdown] = []
    for segment in iter_week_segments(start_date, end_date):
        daily = metrics.get_daily_metrics(worker.id, segment.start_date, segment.end_date)
        rate = rates.resolve(worker.id, work_status, segment.start_date, segment.end_date)
        target_hours = rate.weekly_hours * segment.days / 7
        weeks.append(
            WeekBreakdown(
                start_date=segment.start_date,
                end_date=segment.end_date,
                days=segment.days,
                billable_hours=daily.billable_hours,
                non_billable_hours=daily.non_billable_hours,
                total_hours=daily.total_hours,
                target_hours=target_hours,
                nad=allocate_nad(leave, segment.days, window_days),
                performance=classify_performance(daily.billable_hours, target_hours, thresholds),
            )
        )
    return weeks


def build_report_rows(
    worker: WorkerProfile,
    start_date: date,
    end_date: date,
    *,
    changes: Iterable[AttributeChangeRecord],
    metrics: DailyMetricsReader,
    rates: TargetRateResolver,
    leave: LeaveTotals = NO_LEAVE,
    thresholds: PerformanceThresholds = DEFAULT_THRESHOLDS,
    region_id: int | None = None,
    window_days: int | None = None,
    include_weekly_breakdown: bool = False,
    include_daily_breakdown: bool = False,
) -> list[ReportRow]:
    """One ReportRow per work-status sub-period of the worker within the window."""
    changes = list(changes)
    if window_days is None:
        window_days = (end_date - start_date).days + 1

    rows: list[ReportRow] = []
    for period in build_attribute_periods(worker, AttributeField.WORK_STATUS, start_date, end_date, changes):
        daily = metrics.get_daily_metrics(worker.id, period.start_date, period.end_date)
        categories = metrics.get_category_breakdown(worker.id, period.start_date, period.end_date)
        target = calculate_target_hours(period, rates)
        weekly: list[WeekBreakdown] = []
        if include_weekly_breakdown:
            weekly = build_weekly_breakdown(
                worker,
                period.value,
                period.start_date,
                period.end_date,
                metrics=metrics,
                rates=rates,
                leave=leave,
                window_days=window_days,
                thresholds=thresholds,
            )
        day_metrics: list[DayMetrics] = []
        if include_daily_breakdown:
            day_metrics = metrics.get_daily_breakdown(worker.id, period.start_date, period.end_date)
        rows.append(
            ReportRow(
                worker_id=worker.id,
                full_name=worker.full_name,
                email=worker.email,
                region_id=region_id,
                work_status=period.value,
                start_date=period.start_date,
                end_date=period.end_date,
                billable_hours=daily.billable_hours,
                non_billable_hours=daily.non_billable_hours,
                total_hours=daily.total_hours,
                entry_count=daily.entry_count,
                target=target,
                nad=allocate_nad(leave, period.days, window_days),
                performance=classify_performance(daily.billable_hours, target.target_total_hours, thresholds),
                categories=tuple(categories),
                weekly_breakdown=tuple(weekly),
                daily_breakdown=tuple(day_metrics),
            )
        )
    return rows


def build_worker_report(
    worker: WorkerProfile,
    start_date: date,
    end_date: date,
    *,
    changes: Iterable[AttributeChangeRecord],
    metrics: DailyMetricsReader,
    rates: TargetRateResolver,
    leave: LeaveTotals = NO_LEAVE,
    thresholds: PerformanceThresholds = DEFAULT_THRESHOLDS,
    include_weekly_breakdown: bool = False,
    include_daily_breakdown: bool = False,
) -> WorkerReport:
    changes = list(changes)
    region_id = predominant_region(worker, start_date, end_date, changes)
    rows = build_report_rows(
        worker,
        start_date,
        end_date,
        changes=changes,
        metrics=metrics,
        rates=rates,
        leave=leave,
        thresholds=thresholds,
        region_id=region_id,
        include_weekly_breakdown=include_weekly_breakdown,
        include_daily_breakdown=include_daily_breakdown,
    )
    return WorkerReport(
        worker=worker,
        region_id=region_id,
        work_status=predominant_work_status(worker, start_date, end_date, changes),
        rows=tuple(rows),
        categories=tuple(merge_category_breakdowns(rows)),
        leave=leave,
    )
