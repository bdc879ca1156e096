from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from productivity.services.status_history import AttributePeriod
from productivity.services.target_rates import ResolvedRate, TargetRateResolver
from productivity.services.week_alignment import iter_week_segments


@dataclass(frozen=True)
class WeekTarget:
    start_date: date
    end_date: date
    days: int
    rate: ResolvedRate
    target_hours: float


@dataclass(frozen=True)
class TargetHours:
    target_total_hours: float
    target_hours_per_week: float
    period_weeks: float
    period_days: int
    weeks: tuple[WeekTarget, ...] = ()


def calculate_target_hours(
    period: AttributePeriod,
    resolver: TargetRateResolver,
) -> TargetHours:
    """Target hours for one work-status sub-period.

    Each Monday-Sunday week (clipped to the period) contributes its own weekly
    rate pro-rated by the days it covers, so an override that starts mid-period
    only affects the weeks it is active in.
    """
    work_status = period.value
    weeks: list[WeekTarget] = []
    target_total_hours = 0.0
    for segment in iter_week_segments(period.start_date, period.end_date):
        rate = resolver.resolve(period.worker_id, work_status, segment.start_date, segment.end_date)
        week_hours = rate.weekly_hours * segment.days / 7
        target_total_hours += week_hours
        weeks.append(
            WeekTarget(
                start_date=segment.start_date,
                end_date=segment.end_date,
                days=segment.days,
                rate=rate,
                target_hours=week_hours,
            )
        )

    period_days = period.days
    period_weeks = period_days / 7
    target_hours_per_week = target_total_hours / period_weeks if period_weeks else 0.0
    return TargetHours(
        target_total_hours=target_total_hours,
        target_hours_per_week=target_hours_per_week,
        period_weeks=period_weeks,
        period_days=period_days,
        weeks=tuple(weeks),
    )
