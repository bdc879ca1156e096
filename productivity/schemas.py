from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from productivity.services.report_calendar import ReportMode
from productivity.services.reports import GroupBy, ReportRequest


class PerformanceReportRequest(BaseModel):
    start_date: date
    end_date: date
    mode: Literal["weekly", "monthly", "yearly"] = "weekly"
    group_by: Literal["region", "overall"] = "overall"
    region_filter: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _validate_range(self) -> "PerformanceReportRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be greater than or equal to start_date.")
        return self

    def to_engine_request(self) -> ReportRequest:
        return ReportRequest(
            start_date=self.start_date,
            end_date=self.end_date,
            mode=ReportMode(self.mode),
            group_by=GroupBy(self.group_by),
            region_filter=self.region_filter,
        )


class PerformanceRead(BaseModel):
    percentage: float
    tier: Literal["BELOW", "MEET", "EXCEEDED"]


class CategoryHoursRead(BaseModel):
    category_id: int | None
    category_name: str
    hours: float


class WeekBreakdownRead(BaseModel):
    start_date: date
    end_date: date
    days: int
    billable_hours: float
    non_billable_hours: float
    total_hours: float
    target_hours: float
    nad_count: int
    nad_hours: float
    performance: PerformanceRead


class DayMetricsRead(BaseModel):
    day: date
    day_name: str
    is_weekend: bool
    billable_hours: float
    non_billable_hours: float
    total_hours: float
    entry_count: int


class ReportRowRead(BaseModel):
    worker_id: int
    full_name: str
    email: str
    region_id: int | None
    work_status: str
    work_status_label: str
    start_date: date
    end_date: date
    days: int
    billable_hours: float
    non_billable_hours: float
    total_hours: float
    entry_count: int
    target_total_hours: float
    target_hours_per_week: float
    period_weeks: float
    nad_count: int
    nad_hours: float
    performance: PerformanceRead
    categories: list[CategoryHoursRead] = Field(default_factory=list)
    weekly_breakdown: list[WeekBreakdownRead] = Field(default_factory=list)
    daily_breakdown: list[DayMetricsRead] = Field(default_factory=list)


class WorkerReportRead(BaseModel):
    worker_id: int
    full_name: str
    email: str
    job_title: str | None
    region_id: int | None
    work_status: str
    work_status_label: str
    billable_hours: float
    non_billable_hours: float
    total_hours: float
    target_total_hours: float
    nad_count: int
    nad_hours: float
    leave_requests: int = 0
    categories: list[CategoryHoursRead] = Field(default_factory=list)
    rows: list[ReportRowRead] = Field(default_factory=list)


class PerformanceBreakdownRead(BaseModel):
    exceeded: int
    meet: int
    below: int


class GroupSummaryRead(BaseModel):
    total_users: int
    total_billable_hours: float
    total_non_billable_hours: float
    total_hours: float
    total_target_hours: float
    total_nad_count: int
    total_nad_hours: float
    avg_performance: float
    performance_breakdown: PerformanceBreakdownRead


class CohortSummaryRead(BaseModel):
    full_time: GroupSummaryRead
    part_time: GroupSummaryRead
    overall: GroupSummaryRead


class CategorySummaryRead(BaseModel):
    category_id: int | None
    category_name: str
    total_hours: float
    user_count: int
    avg_hours_per_user: float


class RegionReportRead(BaseModel):
    region_id: int | None
    region_name: str
    workers: list[WorkerReportRead] = Field(default_factory=list)
    summary: CohortSummaryRead
    category_summary: list[CategorySummaryRead] = Field(default_factory=list)


class ReportRequestEcho(BaseModel):
    start_date: date
    end_date: date
    mode: Literal["weekly", "monthly", "yearly"]
    group_by: Literal["region", "overall"]
    region_filter: int | None


class PerformanceReportResponse(BaseModel):
    request: ReportRequestEcho
    report_id: str
    generated_at: datetime
    included_workers: int
    failed_workers: int
    failed_worker_ids: list[int] = Field(default_factory=list)
    leave_degraded: bool
    workers: list[WorkerReportRead] = Field(default_factory=list)
    summary: CohortSummaryRead
    category_summary: list[CategorySummaryRead] = Field(default_factory=list)
    regions: list[RegionReportRead] = Field(default_factory=list)


class ReportingWeekRead(BaseModel):
    week_number: int
    start_date: date
    end_date: date
    label: str


class ReportingMonthRead(BaseModel):
    number: int
    start_date: date
    end_date: date
    title: str
    subtitle: str
    weeks: list[ReportingWeekRead] = Field(default_factory=list)


class ReportingCalendarResponse(BaseModel):
    year: int
    weeks: list[ReportingWeekRead] = Field(default_factory=list)
    months: list[ReportingMonthRead] = Field(default_factory=list)
