from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable

from productivity.errors import DataGapError, InvalidWindowError
from productivity.services.workforce import (
    AttributeChangeRecord,
    AttributeField,
    WorkerProfile,
    field_value,
    normalize_work_status,
)

logger = logging.getLogger("productivity.status_history")

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class AttributePeriod:
    worker_id: int
    field_name: str
    value: Any
    start_date: date
    end_date: date

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def overlap_days(self, start_date: date, end_date: date) -> int:
        lo = max(self.start_date, start_date)
        hi = min(self.end_date, end_date)
        if hi < lo:
            return 0
        return (hi - lo).days + 1


def sorted_changes(
    changes: Iterable[AttributeChangeRecord],
    field_name: str | AttributeField,
) -> list[AttributeChangeRecord]:
    name = field_value(field_name)
    return sorted(
        (change for change in changes if change.field_name == name),
        key=lambda change: (change.effective_date, change.id),
    )


def value_on(
    worker: WorkerProfile,
    field_name: str | AttributeField,
    changes: Iterable[AttributeChangeRecord],
    day: date,
) -> Any:
    name = field_value(field_name)
    ordered = sorted_changes(changes, name)
    if not ordered:
        return worker.current_value(name)

    if day < ordered[0].effective_date:
        return ordered[0].old_value

    applicable = ordered[0]
    for change in ordered:
        if change.effective_date > day:
            break
        applicable = change
    return applicable.new_value


def ensure_partition(periods: list[AttributePeriod], start_date: date, end_date: date) -> None:
    if not periods:
        raise DataGapError("No attribute periods were produced for the window.")
    if periods[0].start_date != start_date:
        raise DataGapError(f"History starts at {periods[0].start_date}, window starts at {start_date}.")
    if periods[-1].end_date != end_date:
        raise DataGapError(f"History ends at {periods[-1].end_date}, window ends at {end_date}.")
    for previous, current in zip(periods, periods[1:]):
        if previous.end_date + _ONE_DAY != current.start_date:
            raise DataGapError(
                f"History is not contiguous between {previous.end_date} and {current.start_date}."
            )


def _normalize(field_name: str, value: Any) -> Any:
    if field_name == AttributeField.WORK_STATUS.value:
        return normalize_work_status(value)
    return value


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _raw_runs(
    name: str,
    start_date: date,
    end_date: date,
    ordered: list[AttributeChangeRecord],
    baseline: Any,
) -> list[tuple[Any, date, date]]:
    runs: list[tuple[Any, date, date]] = []
    current_value = baseline
    current_start = start_date
    for change in ordered:
        if change.effective_date <= start_date or change.effective_date > end_date:
            continue
        if change.effective_date > current_start:
            runs.append((current_value, current_start, change.effective_date - _ONE_DAY))
            current_start = change.effective_date
        # Several changes on one day: the last one recorded wins.
        current_value = change.new_value
    runs.append((current_value, current_start, end_date))
    return runs


def build_attribute_periods(
    worker: WorkerProfile,
    field_name: str | AttributeField,
    start_date: date,
    end_date: date,
    changes: Iterable[AttributeChangeRecord],
) -> list[AttributePeriod]:
    """Reconstruct the maximal runs of one attribute value over [start_date, end_date].

    Change records outside the window never open a period but still decide the
    value the window starts with: when every record is dated after the window,
    that is the first record's old_value rather than the worker's current value.
    Runs whose recorded value is missing fall back to the worker's current value.
    """
    if end_date < start_date:
        raise InvalidWindowError("end_date must be greater than or equal to start_date")

    name = field_value(field_name)
    ordered = sorted_changes(changes, name)
    baseline = value_on(worker, name, ordered, start_date)

    periods: list[AttributePeriod] = []
    for value, run_start, run_end in _raw_runs(name, start_date, end_date, ordered, baseline):
        if _is_missing(value):
            logger.warning(
                "attribute_history_gap",
                extra={
                    "worker_id": worker.id,
                    "field_name": name,
                    "gap_start": run_start.isoformat(),
                    "gap_end": run_end.isoformat(),
                },
            )
            value = worker.current_value(name)
        value = _normalize(name, value)

        if periods and periods[-1].value == value:
            periods[-1] = AttributePeriod(
                worker_id=worker.id,
                field_name=name,
                value=value,
                start_date=periods[-1].start_date,
                end_date=run_end,
            )
            continue
        periods.append(
            AttributePeriod(
                worker_id=worker.id,
                field_name=name,
                value=value,
                start_date=run_start,
                end_date=run_end,
            )
        )

    try:
        ensure_partition(periods, start_date, end_date)
    except DataGapError:
        logger.warning(
            "attribute_history_gap",
            extra={
                "worker_id": worker.id,
                "field_name": name,
                "gap_start": start_date.isoformat(),
                "gap_end": end_date.isoformat(),
            },
        )
        return [
            AttributePeriod(
                worker_id=worker.id,
                field_name=name,
                value=_normalize(name, worker.current_value(name)),
                start_date=start_date,
                end_date=end_date,
            )
        ]
    return periods
