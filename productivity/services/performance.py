from __future__ import annotations

import enum
from dataclasses import dataclass

from productivity.settings import get_settings


class PerformanceTier(str, enum.Enum):
    BELOW = "BELOW"
    MEET = "MEET"
    EXCEEDED = "EXCEEDED"


@dataclass(frozen=True)
class PerformanceThresholds:
    exceeded: float = 101.0
    meet: float = 99.0

    def __post_init__(self) -> None:
        if self.meet > self.exceeded:
            raise ValueError("meet threshold must not be above the exceeded threshold")

    @classmethod
    def from_settings(cls) -> PerformanceThresholds:
        settings = get_settings()
        return cls(
            exceeded=settings.performance_exceeded_threshold,
            meet=settings.performance_meet_threshold,
        )


DEFAULT_THRESHOLDS = PerformanceThresholds()


@dataclass(frozen=True)
class PerformanceResult:
    percentage: float
    tier: PerformanceTier

    @property
    def display_percentage(self) -> float:
        return round(self.percentage, 1)


def performance_percentage(actual_hours: float, target_hours: float) -> float:
    if target_hours <= 0:
        return 0.0
    return actual_hours / target_hours * 100


def classify_percentage(
    percentage: float,
    thresholds: PerformanceThresholds = DEFAULT_THRESHOLDS,
) -> PerformanceTier:
    if percentage >= thresholds.exceeded:
        return PerformanceTier.EXCEEDED
    if percentage >= thresholds.meet:
        return PerformanceTier.MEET
    return PerformanceTier.BELOW


def classify_performance(
    actual_hours: float,
    target_hours: float,
    thresholds: PerformanceThresholds = DEFAULT_THRESHOLDS,
) -> PerformanceResult:
    percentage = performance_percentage(actual_hours, target_hours)
    return PerformanceResult(percentage=percentage, tier=classify_percentage(percentage, thresholds))
