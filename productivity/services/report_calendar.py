from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, timedelta

from productivity.errors import InvalidWindowError
from productivity.settings import get_settings

WEEKS_PER_MONTH = 4


class ReportMode(str, enum.Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


_MIN_WINDOW_DAYS: dict[ReportMode, int] = {
    ReportMode.WEEKLY: 7,
    ReportMode.MONTHLY: 28,
    ReportMode.YEARLY: 28,
}


@dataclass(frozen=True)
class ReportingWeek:
    week_number: int
    year: int
    start_date: date
    end_date: date

    @property
    def label(self) -> str:
        return f"Week {self.week_number} ({_short(self.start_date)} - {_short(self.end_date)})"


@dataclass(frozen=True)
class ReportingMonth:
    number: int
    weeks: list[ReportingWeek] = field(default_factory=list)

    @property
    def start_date(self) -> date:
        return self.weeks[0].start_date

    @property
    def end_date(self) -> date:
        return self.weeks[-1].end_date

    @property
    def title(self) -> str:
        return f"Month {self.number} ({_short(self.start_date)} - {_short(self.end_date)})"

    @property
    def subtitle(self) -> str:
        return f"Weeks {self.weeks[0].week_number}-{self.weeks[-1].week_number}"


def _short(day: date) -> str:
    return f"{day.strftime('%b')} {day.day}"


def _calendar_anchor(week1_start: date | None, weeks_per_year: int | None) -> tuple[date, int]:
    settings = get_settings()
    anchor = week1_start or settings.report_calendar_week1_start
    per_year = weeks_per_year or settings.report_calendar_weeks_per_year
    if anchor.weekday() != 0:
        raise InvalidWindowError(f"Reporting calendar must start on a Monday, got {anchor.isoformat()}")
    if per_year <= 0:
        raise InvalidWindowError("Reporting calendar needs at least one week per year")
    return anchor, per_year


def week_list_for_year(
    year: int,
    *,
    week1_start: date | None = None,
    weeks_per_year: int | None = None,
) -> list[ReportingWeek]:
    anchor, per_year = _calendar_anchor(week1_start, weeks_per_year)
    if year < anchor.year:
        raise InvalidWindowError(f"Year must be >= {anchor.year}")

    first_index = (year - anchor.year) * per_year
    weeks: list[ReportingWeek] = []
    for offset in range(per_year):
        week_start = anchor + timedelta(days=(first_index + offset) * 7)
        weeks.append(
            ReportingWeek(
                week_number=offset + 1,
                year=year,
                start_date=week_start,
                end_date=week_start + timedelta(days=6),
            )
        )
    return weeks


def month_list_for_year(
    year: int,
    *,
    week1_start: date | None = None,
    weeks_per_year: int | None = None,
) -> list[ReportingMonth]:
    weeks = week_list_for_year(year, week1_start=week1_start, weeks_per_year=weeks_per_year)
    months: list[ReportingMonth] = []
    for index in range(0, len(weeks), WEEKS_PER_MONTH):
        chunk = weeks[index : index + WEEKS_PER_MONTH]
        # A trailing partial group is not a reporting month.
        if len(chunk) == WEEKS_PER_MONTH:
            months.append(ReportingMonth(number=len(months) + 1, weeks=chunk))
    return months


def weeks_intersecting(
    start_date: date,
    end_date: date,
    *,
    year: int | None = None,
) -> list[ReportingWeek]:
    weeks = week_list_for_year(year or start_date.year)
    return [week for week in weeks if week.start_date <= end_date and week.end_date >= start_date]


def months_intersecting(
    start_date: date,
    end_date: date,
    *,
    year: int | None = None,
) -> list[ReportingMonth]:
    months = month_list_for_year(year or start_date.year)
    return [month for month in months if month.start_date <= end_date and month.end_date >= start_date]


def validate_report_window(start_date: date, end_date: date, mode: ReportMode | str) -> None:
    try:
        resolved_mode = ReportMode(mode)
    except ValueError as exc:
        raise InvalidWindowError(f"Unsupported report mode: {mode}") from exc

    if end_date < start_date:
        raise InvalidWindowError("end_date must be greater than or equal to start_date")
    if start_date.weekday() != 0:
        raise InvalidWindowError(f"start_date must be a Monday, got {start_date.isoformat()}")
    if end_date.weekday() != 6:
        raise InvalidWindowError(f"end_date must be a Sunday, got {end_date.isoformat()}")

    window_days = (end_date - start_date).days + 1
    min_days = _MIN_WINDOW_DAYS[resolved_mode]
    if window_days < min_days:
        raise InvalidWindowError(
            f"{resolved_mode.value} reports need at least {min_days} days, got {window_days}"
        )
