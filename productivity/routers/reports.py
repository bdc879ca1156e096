from datetime import date

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session, sessionmaker

from productivity.db import get_db, get_session_factory
from productivity.errors import ApiError, InvalidWindowError
from productivity.schemas import (
    PerformanceReportRequest,
    PerformanceReportResponse,
    ReportingCalendarResponse,
    ReportingMonthRead,
    ReportingWeekRead,
)
from productivity.services.leave_client import build_leave_lookup
from productivity.services.report_calendar import (
    ReportingWeek,
    month_list_for_year,
    months_intersecting,
    week_list_for_year,
    weeks_intersecting,
)
from productivity.services.reports import ReportEngine
from productivity.services.repository import SqlDailyMetricsReader, SqlWorkforceDirectory

router = APIRouter(prefix="/api/reports", tags=["reports"])


def get_report_engine(
    db: Session = Depends(get_db),
    session_factory: sessionmaker[Session] = Depends(get_session_factory),
) -> ReportEngine:
    return ReportEngine(
        SqlWorkforceDirectory(db),
        SqlDailyMetricsReader(session_factory),
        build_leave_lookup(),
    )


def _week_read(week: ReportingWeek) -> ReportingWeekRead:
    return ReportingWeekRead(
        week_number=week.week_number,
        start_date=week.start_date,
        end_date=week.end_date,
        label=week.label,
    )


@router.post("/performance", response_model=PerformanceReportResponse)
def create_performance_report(
    payload: PerformanceReportRequest,
    request: Request,
    engine: ReportEngine = Depends(get_report_engine),
) -> PerformanceReportResponse:
    request.state.actor = "report"
    try:
        result = engine.generate(payload.to_engine_request())
    except InvalidWindowError as exc:
        raise ApiError(status_code=422, code="INVALID_WINDOW", message=str(exc)) from exc
    return PerformanceReportResponse.model_validate(result.to_dict())


@router.get("/calendar/{year}", response_model=ReportingCalendarResponse)
def get_reporting_calendar(
    year: int,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
) -> ReportingCalendarResponse:
    if (start_date is None) != (end_date is None):
        raise ApiError(status_code=422, code="INVALID_WINDOW", message="start_date and end_date go together.")
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ApiError(
            status_code=422,
            code="INVALID_WINDOW",
            message="end_date must be greater than or equal to start_date.",
        )

    try:
        if start_date is not None and end_date is not None:
            weeks = weeks_intersecting(start_date, end_date, year=year)
            months = months_intersecting(start_date, end_date, year=year)
        else:
            weeks = week_list_for_year(year)
            months = month_list_for_year(year)
    except InvalidWindowError as exc:
        raise ApiError(status_code=422, code="INVALID_WINDOW", message=str(exc)) from exc

    return ReportingCalendarResponse(
        year=year,
        weeks=[_week_read(week) for week in weeks],
        months=[
            ReportingMonthRead(
                number=month.number,
                start_date=month.start_date,
                end_date=month.end_date,
                title=month.title,
                subtitle=month.subtitle,
                weeks=[_week_read(week) for week in month.weeks],
            )
            for month in months
        ],
    )
