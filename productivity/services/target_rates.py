from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date

from productivity.errors import ConfigurationMissingError
from productivity.services.workforce import WorkStatus, normalize_work_status
from productivity.settings import get_default_weekly_targets

logger = logging.getLogger("productivity.target_rates")

# Denominator of every performance percentage when configuration is absent.
FALLBACK_WEEKLY_HOURS: dict[str, float] = {
    WorkStatus.FULL_TIME.value: 35.0,
    WorkStatus.PART_TIME.value: 20.0,
}

RATE_SOURCE_OVERRIDE = "override"
RATE_SOURCE_DEFAULT = "default"
RATE_SOURCE_FALLBACK = "fallback"


@dataclass(frozen=True)
class TargetOverride:
    id: int
    worker_id: int
    work_status: str
    weekly_hours: float
    start_date: date | None = None
    end_date: date | None = None

    def is_active_between(self, start_date: date, end_date: date) -> bool:
        starts_in_time = self.start_date is None or self.start_date <= end_date
        ends_in_time = self.end_date is None or self.end_date >= start_date
        return starts_in_time and ends_in_time


@dataclass(frozen=True)
class ResolvedRate:
    weekly_hours: float
    source: str
    override_id: int | None = None


def rate_key(work_status: str | None) -> str:
    # Anything that is not full-time is measured against the part-time target.
    if normalize_work_status(work_status) == WorkStatus.FULL_TIME.value:
        return WorkStatus.FULL_TIME.value
    return WorkStatus.PART_TIME.value


def resolve_best_override(
    overrides: Iterable[TargetOverride],
    *,
    worker_id: int,
    work_status: str | None,
    week_start: date,
    week_end: date,
) -> TargetOverride | None:
    key = rate_key(work_status)
    applicable = [
        item
        for item in overrides
        if item.worker_id == worker_id
        and rate_key(item.work_status) == key
        and item.is_active_between(week_start, week_end)
    ]
    if not applicable:
        return None

    applicable.sort(key=lambda item: item.id)
    return applicable[0]


def configured_weekly_hours(defaults: Mapping[str, float | None], work_status: str | None) -> float:
    key = rate_key(work_status)
    value = defaults.get(key)
    if value is None or value <= 0:
        raise ConfigurationMissingError(f"No weekly target configured for {key}")
    return float(value)


class TargetRateResolver:
    def __init__(
        self,
        defaults: Mapping[str, float | None] | None = None,
        overrides: Iterable[TargetOverride] = (),
        *,
        default_rates: Mapping[str, ResolvedRate] | None = None,
    ):
        self._defaults = dict(defaults) if defaults is not None else get_default_weekly_targets()
        self._overrides = list(overrides)
        if default_rates is not None:
            self._default_rates = dict(default_rates)
        else:
            self._default_rates = {key: self._resolve_default(key) for key in FALLBACK_WEEKLY_HOURS}

    def for_overrides(self, overrides: Iterable[TargetOverride]) -> TargetRateResolver:
        """Same defaults, resolved once, with a worker's own overrides."""
        return TargetRateResolver(self._defaults, overrides, default_rates=self._default_rates)

    def _resolve_default(self, key: str) -> ResolvedRate:
        try:
            return ResolvedRate(
                weekly_hours=configured_weekly_hours(self._defaults, key),
                source=RATE_SOURCE_DEFAULT,
            )
        except ConfigurationMissingError:
            logger.warning(
                "target_rate_config_missing",
                extra={"work_status": key, "fallback_hours": FALLBACK_WEEKLY_HOURS[key]},
            )
            return ResolvedRate(weekly_hours=FALLBACK_WEEKLY_HOURS[key], source=RATE_SOURCE_FALLBACK)

    def default_rate(self, work_status: str | None) -> ResolvedRate:
        return self._default_rates[rate_key(work_status)]

    def resolve(
        self,
        worker_id: int,
        work_status: str | None,
        week_start: date,
        week_end: date,
    ) -> ResolvedRate:
        override = resolve_best_override(
            self._overrides,
            worker_id=worker_id,
            work_status=work_status,
            week_start=week_start,
            week_end=week_end,
        )
        if override is not None:
            return ResolvedRate(
                weekly_hours=float(override.weekly_hours),
                source=RATE_SOURCE_OVERRIDE,
                override_id=override.id,
            )
        return self.default_rate(work_status)
