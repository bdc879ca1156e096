from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Any

from productivity.services.status_history import AttributePeriod, build_attribute_periods
from productivity.services.workforce import AttributeChangeRecord, AttributeField, WorkerProfile


def resolve_predominant_value(
    periods: Iterable[AttributePeriod],
    start_date: date,
    end_date: date,
) -> Any:
    """Value whose periods cover the most days of [start_date, end_date].

    Ties go to the value whose first period starts earliest. Returns None when
    no period overlaps the window.
    """
    days_by_value: dict[Any, int] = {}
    first_start: dict[Any, date] = {}
    for period in periods:
        overlap = period.overlap_days(start_date, end_date)
        if overlap <= 0:
            continue
        days_by_value[period.value] = days_by_value.get(period.value, 0) + overlap
        if period.value not in first_start or period.start_date < first_start[period.value]:
            first_start[period.value] = period.start_date

    if not days_by_value:
        return None

    ranked = sorted(
        days_by_value,
        key=lambda value: (-days_by_value[value], first_start[value]),
    )
    return ranked[0]


def predominant_attribute(
    worker: WorkerProfile,
    field_name: str | AttributeField,
    start_date: date,
    end_date: date,
    changes: Iterable[AttributeChangeRecord],
) -> Any:
    periods = build_attribute_periods(worker, field_name, start_date, end_date, changes)
    return resolve_predominant_value(periods, start_date, end_date)


def predominant_region(
    worker: WorkerProfile,
    start_date: date,
    end_date: date,
    changes: Iterable[AttributeChangeRecord],
) -> int | None:
    value = predominant_attribute(worker, AttributeField.REGION, start_date, end_date, changes)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def predominant_work_status(
    worker: WorkerProfile,
    start_date: date,
    end_date: date,
    changes: Iterable[AttributeChangeRecord],
) -> str:
    return predominant_attribute(worker, AttributeField.WORK_STATUS, start_date, end_date, changes)
