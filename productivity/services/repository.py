from __future__ import annotations

import json
from collections import defaultdict
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from productivity.models import DailyWorklogSummary, Region, ReportCategory, TargetOverride, Worker, WorkerChangeLog
from productivity.services.daily_metrics import (
    BILLABLE,
    NON_BILLABLE,
    CategoryHours,
    DailySummary,
    DailyMetrics,
    DayMetrics,
    aggregate_categories,
    aggregate_daily_metrics,
    classify_category_type,
    daily_breakdown,
)
from productivity.services.target_rates import TargetOverride as TargetOverrideRecord
from productivity.services.workforce import AttributeChangeRecord, WorkerProfile

SECONDS_PER_HOUR = 3600
UNCATEGORIZED_NAME = "Uncategorized"


def decode_change_value(raw: str | None) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        # Older rows were written without JSON encoding.
        return raw


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


class SqlWorkforceDirectory:
    def __init__(self, db: Session):
        self.db = db

    def list_workers(self) -> list[WorkerProfile]:
        rows = self.db.scalars(select(Worker).order_by(Worker.id.asc())).all()
        return [
            WorkerProfile(
                id=row.id,
                full_name=row.full_name,
                email=row.email,
                work_status=_enum_value(row.work_status),
                region_id=row.region_id,
                hire_date=row.hire_date,
                end_date=row.end_date,
                is_active=row.is_active,
                job_title=row.job_title,
            )
            for row in rows
        ]

    def list_changes(self, worker_id: int) -> list[AttributeChangeRecord]:
        rows = self.db.scalars(
            select(WorkerChangeLog)
            .where(WorkerChangeLog.worker_id == worker_id)
            .order_by(WorkerChangeLog.effective_date.asc(), WorkerChangeLog.id.asc())
        ).all()
        return [
            AttributeChangeRecord(
                id=row.id,
                worker_id=row.worker_id,
                field_name=row.field_name,
                old_value=decode_change_value(row.old_value),
                new_value=decode_change_value(row.new_value),
                effective_date=row.effective_date,
                reason=row.reason,
            )
            for row in rows
        ]

    def list_target_overrides(self, worker_id: int) -> list[TargetOverrideRecord]:
        rows = self.db.scalars(
            select(TargetOverride)
            .where(TargetOverride.worker_id == worker_id)
            .order_by(TargetOverride.id.asc())
        ).all()
        return [
            TargetOverrideRecord(
                id=row.id,
                worker_id=row.worker_id,
                work_status=_enum_value(row.work_status),
                weekly_hours=row.weekly_hours,
                start_date=row.start_date,
                end_date=row.end_date,
            )
            for row in rows
        ]

    def region_names(self) -> dict[int, str]:
        rows = self.db.execute(select(Region.id, Region.name)).all()
        return {region_id: name for region_id, name in rows}


class SqlDailyMetricsReader:
    """Daily summary reads; every call opens its own session so it can run from worker threads."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def load_summaries(self, worker_id: int, start_date: date, end_date: date) -> list[DailySummary]:
        with self.session_factory() as db:
            rows = db.execute(
                select(DailyWorklogSummary, ReportCategory.name)
                .outerjoin(ReportCategory, ReportCategory.id == DailyWorklogSummary.category_id)
                .where(
                    DailyWorklogSummary.worker_id == worker_id,
                    DailyWorklogSummary.report_date >= start_date,
                    DailyWorklogSummary.report_date <= end_date,
                )
                .order_by(DailyWorklogSummary.report_date.asc(), DailyWorklogSummary.id.asc())
            ).all()

        hours_by_day: dict[date, dict[str, float]] = defaultdict(lambda: defaultdict(float))
        entries_by_day: dict[date, int] = defaultdict(int)
        categories_by_day: dict[date, list[CategoryHours]] = defaultdict(list)
        for summary, category_name in rows:
            hours = (summary.total_duration_seconds or 0) / SECONDS_PER_HOUR
            bucket = classify_category_type(summary.category_type)
            hours_by_day[summary.report_date][bucket] += hours
            entries_by_day[summary.report_date] += summary.entries_count or 0
            categories_by_day[summary.report_date].append(
                CategoryHours(
                    category_id=summary.category_id,
                    category_name=category_name or UNCATEGORIZED_NAME,
                    hours=hours,
                )
            )

        summaries: list[DailySummary] = []
        for day in sorted(hours_by_day):
            buckets = hours_by_day[day]
            summaries.append(
                DailySummary(
                    worker_id=worker_id,
                    day=day,
                    billable_hours=buckets.get(BILLABLE, 0.0),
                    non_billable_hours=buckets.get(NON_BILLABLE, 0.0),
                    uncategorized_hours=sum(
                        value for key, value in buckets.items() if key not in {BILLABLE, NON_BILLABLE}
                    ),
                    entry_count=entries_by_day[day],
                    categories=tuple(categories_by_day[day]),
                )
            )
        return summaries

    def get_daily_metrics(self, worker_id: int, start_date: date, end_date: date) -> DailyMetrics:
        return aggregate_daily_metrics(self.load_summaries(worker_id, start_date, end_date), start_date, end_date)

    def get_category_breakdown(self, worker_id: int, start_date: date, end_date: date) -> list[CategoryHours]:
        return aggregate_categories(self.load_summaries(worker_id, start_date, end_date), start_date, end_date)

    def get_daily_breakdown(self, worker_id: int, start_date: date, end_date: date) -> list[DayMetrics]:
        return daily_breakdown(self.load_summaries(worker_id, start_date, end_date), start_date, end_date)
