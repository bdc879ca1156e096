from __future__ import annotations

import enum
import logging
import time
import uuid
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Protocol

from productivity.errors import ExternalServiceError
from productivity.services.daily_metrics import DailyMetricsReader
from productivity.services.group_summary import (
    CategorySummary,
    CohortSummary,
    summarize_categories,
    summarize_cohorts,
)
from productivity.services.leave_client import EMPTY_LEAVE_RESPONSE, LeaveLookup, normalize_email
from productivity.services.nad_allocation import NO_LEAVE, LeaveTotals
from productivity.services.performance import PerformanceThresholds
from productivity.services.predominance import predominant_region
from productivity.services.report_calendar import ReportMode, validate_report_window
from productivity.services.report_rows import WorkerReport, build_worker_report
from productivity.services.target_rates import TargetOverride, TargetRateResolver
from productivity.services.week_alignment import is_single_week
from productivity.services.workforce import (
    AttributeChangeRecord,
    WorkerProfile,
    is_active_for_window,
)
from productivity.settings import get_default_weekly_targets, get_settings

logger = logging.getLogger("productivity.reports")

UNASSIGNED_REGION_NAME = "Unassigned"


class GroupBy(str, enum.Enum):
    OVERALL = "overall"
    REGION = "region"


class WorkforceDirectory(Protocol):
    def list_workers(self) -> list[WorkerProfile]: ...

    def list_changes(self, worker_id: int) -> list[AttributeChangeRecord]: ...

    def list_target_overrides(self, worker_id: int) -> list[TargetOverride]: ...

    def region_names(self) -> dict[int, str]: ...


@dataclass(frozen=True)
class ReportRequest:
    start_date: date
    end_date: date
    mode: ReportMode = ReportMode.WEEKLY
    group_by: GroupBy = GroupBy.OVERALL
    region_filter: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "mode": ReportMode(self.mode).value,
            "group_by": GroupBy(self.group_by).value,
            "region_filter": self.region_filter,
        }


@dataclass(frozen=True)
class RegionReport:
    region_id: int | None
    region_name: str
    workers: tuple[WorkerReport, ...]
    summary: CohortSummary
    category_summary: tuple[CategorySummary, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "region_id": self.region_id,
            "region_name": self.region_name,
            "workers": [item.to_dict() for item in self.workers],
            "summary": self.summary.to_dict(),
            "category_summary": [item.to_dict() for item in self.category_summary],
        }


@dataclass(frozen=True)
class ReportResult:
    request: ReportRequest
    report_id: str
    generated_at: datetime
    workers: tuple[WorkerReport, ...]
    summary: CohortSummary
    category_summary: tuple[CategorySummary, ...]
    regions: tuple[RegionReport, ...] = ()
    failed_worker_ids: tuple[int, ...] = ()
    leave_degraded: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "request": self.request.to_dict(),
            "report_id": self.report_id,
            "generated_at": self.generated_at.isoformat(),
            "included_workers": len(self.workers),
            "failed_workers": len(self.failed_worker_ids),
            "failed_worker_ids": list(self.failed_worker_ids),
            "leave_degraded": self.leave_degraded,
            "workers": [item.to_dict() for item in self.workers],
            "summary": self.summary.to_dict(),
            "category_summary": [item.to_dict() for item in self.category_summary],
            "regions": [item.to_dict() for item in self.regions],
        }


@dataclass
class _WorkerInput:
    worker: WorkerProfile
    changes: list[AttributeChangeRecord]
    overrides: list[TargetOverride] = field(default_factory=list)


class ReportEngine:
    """Single entry point for every report surface.

    Reads go through the injected directory, daily-metrics reader and leave
    lookup; everything else is computed in memory.
    """

    def __init__(
        self,
        directory: WorkforceDirectory,
        metrics: DailyMetricsReader,
        leave_lookup: LeaveLookup | None = None,
        *,
        default_targets: Mapping[str, float | None] | None = None,
        thresholds: PerformanceThresholds | None = None,
        default_nad_hour_rate: float | None = None,
        max_workers: int | None = None,
    ):
        settings = get_settings()
        self.directory = directory
        self.metrics = metrics
        self.leave_lookup = leave_lookup
        self.default_targets = dict(default_targets) if default_targets is not None else get_default_weekly_targets()
        self.thresholds = thresholds or PerformanceThresholds.from_settings()
        self.default_nad_hour_rate = (
            default_nad_hour_rate if default_nad_hour_rate is not None else settings.nad_default_hour_rate
        )
        self.max_workers = max(1, max_workers or settings.report_max_workers)

    def _log_worker_failure(self, worker_id: int, request: ReportRequest, report_id: str, stage: str) -> None:
        logger.exception(
            "worker_report_failed",
            extra={
                "report_id": report_id,
                "worker_id": worker_id,
                "stage": stage,
                "start_date": request.start_date.isoformat(),
                "end_date": request.end_date.isoformat(),
            },
        )

    def _load_worker(self, worker: WorkerProfile, request: ReportRequest) -> _WorkerInput | None:
        changes = self.directory.list_changes(worker.id)
        if request.region_filter is not None:
            region_id = predominant_region(worker, request.start_date, request.end_date, changes)
            if region_id != request.region_filter:
                return None
        return _WorkerInput(
            worker=worker,
            changes=changes,
            overrides=self.directory.list_target_overrides(worker.id),
        )

    def _select_workers(self, request: ReportRequest, report_id: str) -> tuple[list[_WorkerInput], list[int]]:
        selected: list[_WorkerInput] = []
        failed: list[int] = []
        for worker in self.directory.list_workers():
            if not is_active_for_window(worker, request.start_date, request.end_date):
                continue
            try:
                item = self._load_worker(worker, request)
            except Exception:
                self._log_worker_failure(worker.id, request, report_id, "select")
                failed.append(worker.id)
                continue
            if item is not None:
                selected.append(item)
        return selected, failed

    def _lookup_leave(
        self,
        request: ReportRequest,
        workers: list[_WorkerInput],
        report_id: str,
    ) -> tuple[dict[str, LeaveTotals], bool]:
        if self.leave_lookup is None or not workers:
            return {}, False

        emails = [item.worker.email for item in workers if item.worker.email]
        try:
            response = self.leave_lookup(request.start_date, request.end_date, emails)
        except ExternalServiceError as exc:
            logger.warning(
                "leave_lookup_degraded",
                extra={
                    "report_id": report_id,
                    "start_date": request.start_date.isoformat(),
                    "end_date": request.end_date.isoformat(),
                    "email_count": len(emails),
                    "error": str(exc),
                },
            )
            return EMPTY_LEAVE_RESPONSE.totals_by_email(self.default_nad_hour_rate), True
        return response.totals_by_email(self.default_nad_hour_rate), False

    def _build_worker(
        self,
        item: _WorkerInput,
        request: ReportRequest,
        rates: TargetRateResolver,
        leave: LeaveTotals,
    ) -> WorkerReport:
        mode = ReportMode(request.mode)
        return build_worker_report(
            item.worker,
            request.start_date,
            request.end_date,
            changes=item.changes,
            metrics=self.metrics,
            rates=rates.for_overrides(item.overrides),
            leave=leave,
            thresholds=self.thresholds,
            include_weekly_breakdown=mode == ReportMode.MONTHLY,
            include_daily_breakdown=mode == ReportMode.WEEKLY and is_single_week(request.start_date, request.end_date),
        )

    def build_worker_reports(
        self,
        request: ReportRequest,
        report_id: str | None = None,
    ) -> tuple[list[WorkerReport], list[int], bool]:
        report_id = report_id or uuid.uuid4().hex
        selected, failed = self._select_workers(request, report_id)
        leave_by_email, leave_degraded = self._lookup_leave(request, selected, report_id)
        rates = TargetRateResolver(self.default_targets)

        reports: list[WorkerReport] = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {
                pool.submit(
                    self._build_worker,
                    item,
                    request,
                    rates,
                    leave_by_email.get(normalize_email(item.worker.email), NO_LEAVE),
                ): item.worker
                for item in selected
            }
            for future in as_completed(futures):
                worker = futures[future]
                try:
                    reports.append(future.result())
                except Exception:
                    self._log_worker_failure(worker.id, request, report_id, "build")
                    failed.append(worker.id)

        reports.sort(key=lambda item: (item.work_status, item.worker.full_name.lower(), item.worker.id))
        return reports, sorted(failed), leave_degraded

    def _group_by_region(self, reports: list[WorkerReport]) -> list[RegionReport]:
        names = self.directory.region_names()
        grouped: dict[int | None, list[WorkerReport]] = {}
        for item in reports:
            grouped.setdefault(item.region_id, []).append(item)

        regions: list[RegionReport] = []
        for region_id, members in grouped.items():
            rows = [row for member in members for row in member.rows]
            regions.append(
                RegionReport(
                    region_id=region_id,
                    region_name=names.get(region_id, UNASSIGNED_REGION_NAME),
                    workers=tuple(members),
                    summary=summarize_cohorts(rows, self.thresholds),
                    category_summary=tuple(summarize_categories(rows)),
                )
            )
        regions.sort(key=lambda item: (item.region_id is None, item.region_name.lower()))
        return regions

    def generate(self, request: ReportRequest) -> ReportResult:
        validate_report_window(request.start_date, request.end_date, request.mode)

        started = time.perf_counter()
        report_id = uuid.uuid4().hex
        reports, failed, leave_degraded = self.build_worker_reports(request, report_id)
        rows = [row for item in reports for row in item.rows]
        regions: list[RegionReport] = []
        if GroupBy(request.group_by) == GroupBy.REGION:
            regions = self._group_by_region(reports)

        result = ReportResult(
            request=request,
            report_id=report_id,
            generated_at=datetime.now(timezone.utc),
            workers=tuple(reports),
            summary=summarize_cohorts(rows, self.thresholds),
            category_summary=tuple(summarize_categories(rows)),
            regions=tuple(regions),
            failed_worker_ids=tuple(failed),
            leave_degraded=leave_degraded,
        )
        logger.info(
            "report_generated",
            extra={
                "report_id": report_id,
                "start_date": request.start_date.isoformat(),
                "end_date": request.end_date.isoformat(),
                "mode": ReportMode(request.mode).value,
                "group_by": GroupBy(request.group_by).value,
                "region_filter": request.region_filter,
                "included_workers": len(reports),
                "failed_workers": len(failed),
                "leave_degraded": leave_degraded,
                "latency_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return result
