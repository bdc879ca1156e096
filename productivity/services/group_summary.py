from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from productivity.services.performance import (
    DEFAULT_THRESHOLDS,
    PerformanceThresholds,
    PerformanceTier,
    classify_performance,
    performance_percentage,
)
from productivity.services.report_rows import ReportRow
from productivity.services.workforce import WorkStatus, normalize_work_status


@dataclass(frozen=True)
class PerformanceBreakdown:
    exceeded: int = 0
    meet: int = 0
    below: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"exceeded": self.exceeded, "meet": self.meet, "below": self.below}


@dataclass(frozen=True)
class GroupSummary:
    total_users: int = 0
    total_billable_hours: float = 0.0
    total_non_billable_hours: float = 0.0
    total_hours: float = 0.0
    total_target_hours: float = 0.0
    total_nad_count: int = 0
    total_nad_hours: float = 0.0
    avg_performance: float = 0.0
    performance_breakdown: PerformanceBreakdown = PerformanceBreakdown()

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_users": self.total_users,
            "total_billable_hours": round(self.total_billable_hours, 2),
            "total_non_billable_hours": round(self.total_non_billable_hours, 2),
            "total_hours": round(self.total_hours, 2),
            "total_target_hours": round(self.total_target_hours, 2),
            "total_nad_count": self.total_nad_count,
            "total_nad_hours": round(self.total_nad_hours, 2),
            "avg_performance": round(self.avg_performance, 1),
            "performance_breakdown": self.performance_breakdown.to_dict(),
        }


@dataclass(frozen=True)
class CohortSummary:
    full_time: GroupSummary
    part_time: GroupSummary
    overall: GroupSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "full_time": self.full_time.to_dict(),
            "part_time": self.part_time.to_dict(),
            "overall": self.overall.to_dict(),
        }


@dataclass(frozen=True)
class CategorySummary:
    category_id: int | None
    category_name: str
    total_hours: float
    user_count: int

    @property
    def avg_hours_per_user(self) -> float:
        if self.user_count <= 0:
            return 0.0
        return self.total_hours / self.user_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "category_id": self.category_id,
            "category_name": self.category_name,
            "total_hours": round(self.total_hours, 2),
            "user_count": self.user_count,
            "avg_hours_per_user": round(self.avg_hours_per_user, 2),
        }


def _performance_breakdown(
    rows: list[ReportRow],
    thresholds: PerformanceThresholds,
) -> PerformanceBreakdown:
    # One vote per worker, measured over all of the worker's rows in the group.
    billable: dict[int, float] = defaultdict(float)
    target: dict[int, float] = defaultdict(float)
    for row in rows:
        billable[row.worker_id] += row.billable_hours
        target[row.worker_id] += row.target.target_total_hours

    counts = {tier: 0 for tier in PerformanceTier}
    for worker_id in billable:
        result = classify_performance(billable[worker_id], target[worker_id], thresholds)
        counts[result.tier] += 1
    return PerformanceBreakdown(
        exceeded=counts[PerformanceTier.EXCEEDED],
        meet=counts[PerformanceTier.MEET],
        below=counts[PerformanceTier.BELOW],
    )


def summarize_group(
    rows: Iterable[ReportRow],
    thresholds: PerformanceThresholds = DEFAULT_THRESHOLDS,
) -> GroupSummary:
    rows = list(rows)
    if not rows:
        return GroupSummary()

    total_billable = sum(row.billable_hours for row in rows)
    total_target = sum(row.target.target_total_hours for row in rows)
    return GroupSummary(
        total_users=len({row.worker_id for row in rows}),
        total_billable_hours=total_billable,
        total_non_billable_hours=sum(row.non_billable_hours for row in rows),
        total_hours=sum(row.total_hours for row in rows),
        total_target_hours=total_target,
        total_nad_count=sum(row.nad.nad_count for row in rows),
        total_nad_hours=sum(row.nad.nad_hours for row in rows),
        avg_performance=performance_percentage(total_billable, total_target),
        performance_breakdown=_performance_breakdown(rows, thresholds),
    )


def split_by_work_status(rows: Iterable[ReportRow]) -> tuple[list[ReportRow], list[ReportRow]]:
    full_time: list[ReportRow] = []
    part_time: list[ReportRow] = []
    for row in rows:
        if normalize_work_status(row.work_status) == WorkStatus.FULL_TIME.value:
            full_time.append(row)
        else:
            part_time.append(row)
    return full_time, part_time


def summarize_cohorts(
    rows: Iterable[ReportRow],
    thresholds: PerformanceThresholds = DEFAULT_THRESHOLDS,
) -> CohortSummary:
    rows = list(rows)
    full_time, part_time = split_by_work_status(rows)
    return CohortSummary(
        full_time=summarize_group(full_time, thresholds),
        part_time=summarize_group(part_time, thresholds),
        overall=summarize_group(rows, thresholds),
    )


def summarize_categories(rows: Iterable[ReportRow]) -> list[CategorySummary]:
    hours: dict[int | None, float] = defaultdict(float)
    names: dict[int | None, str] = {}
    hours_by_worker: dict[int | None, dict[int, float]] = defaultdict(lambda: defaultdict(float))
    for row in rows:
        for item in row.categories:
            hours[item.category_id] += item.hours
            names.setdefault(item.category_id, item.category_name)
            hours_by_worker[item.category_id][row.worker_id] += item.hours

    summaries = [
        CategorySummary(
            category_id=key,
            category_name=names[key],
            total_hours=total,
            user_count=sum(1 for value in hours_by_worker[key].values() if value > 0),
        )
        for key, total in hours.items()
    ]
    summaries.sort(key=lambda item: (-item.total_hours, item.category_name))
    return summaries
