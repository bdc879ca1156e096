from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal


@dataclass(frozen=True)
class LeaveTotals:
    nad_count: float = 0.0
    nad_hour_rate: float = 8.0
    requests: int = 0

    @property
    def nad_hours(self) -> float:
        return self.nad_count * self.nad_hour_rate


NO_LEAVE = LeaveTotals()


@dataclass(frozen=True)
class NadAllocation:
    nad_count: int
    nad_hours: float


def round_half_up(value: float, places: int = 0) -> Decimal:
    # repr() keeps 2.5 as 2.5 instead of its binary expansion.
    exponent = Decimal(1).scaleb(-places)
    return Decimal(repr(float(value))).quantize(exponent, rounding=ROUND_HALF_UP)


def allocate_nad(totals: LeaveTotals, subperiod_days: int, window_days: int) -> NadAllocation:
    """Share of window-level leave attributed to a sub-period by calendar-day weight.

    Count rounds half-up to an integer, hours half-up to two decimals.
    """
    if window_days <= 0 or subperiod_days <= 0:
        return NadAllocation(nad_count=0, nad_hours=0.0)

    ratio = subperiod_days / window_days
    return NadAllocation(
        nad_count=int(round_half_up(totals.nad_count * ratio)),
        nad_hours=float(round_half_up(totals.nad_hours * ratio, 2)),
    )
