"""Twelve-month series primitive, cumulative accumulation and actual/forecast blending.

A ``MonthSeries`` always covers the whole calendar year: months without a stored fact
read as 0.0, never ``None`` or NaN, so every downstream sum, ratio and comparison can
assume total coverage.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from itertools import accumulate

from finplan.core.errors import InvalidCutoffMonth

MONTHS: tuple[int, ...] = tuple(range(1, 13))
MONTH_LABELS: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def _finite(value: float) -> float:
    value = float(value)
    return value if math.isfinite(value) else 0.0


@dataclass(frozen=True, slots=True)
class MonthSeries:
    """Immutable vector of 12 floats indexed by calendar month (1..12)."""

    values: tuple[float, ...]

    def __post_init__(self) -> None:
        values = tuple(_finite(value) for value in self.values)
        if len(values) != 12:
            raise ValueError(f"MonthSeries needs exactly 12 values, got {len(values)}.")
        object.__setattr__(self, "values", values)

    @classmethod
    def zeros(cls) -> MonthSeries:
        return cls((0.0,) * 12)

    @classmethod
    def of(cls, values: Iterable[float]) -> MonthSeries:
        return cls(tuple(values))

    def __getitem__(self, month: int) -> float:
        if month not in MONTHS:
            raise IndexError(f"month must be between 1 and 12, got {month}.")
        return self.values[month - 1]

    def __iter__(self) -> Iterator[float]:
        return iter(self.values)

    def __len__(self) -> int:
        return 12

    def __add__(self, other: MonthSeries) -> MonthSeries:
        return MonthSeries(tuple(a + b for a, b in zip(self.values, other.values)))

    def total(self, month_from: int = 1, month_to: int = 12) -> float:
        return sum(self.values[month_from - 1 : month_to])

    def mean(self) -> float:
        """Average over all 12 months; used for stock measures such as headcount."""

        return self.total() / 12

    def has_positive(self) -> bool:
        return any(value > 0 for value in self.values)

    def to_list(self) -> list[float]:
        return list(self.values)


def normalize_series(rows: Iterable[tuple[int, float]]) -> MonthSeries:
    """Spread ``(month, value)`` rows over the calendar year.

    Absent months read as 0.0; rows outside 1..12 are ignored; a duplicated month keeps
    the last occurrence.
    """

    by_month: dict[int, float] = {}
    for month, value in rows:
        by_month[int(month)] = value
    return MonthSeries(tuple(by_month.get(month, 0.0) for month in MONTHS))


def cumulative(series: MonthSeries) -> MonthSeries:
    """Running sum from January, never reset inside the year."""

    return MonthSeries(tuple(accumulate(series.values)))


def validate_cutoff_month(cutoff_month: object) -> int:
    """Reject anything but an integer month in 1..12; never clamp."""

    if isinstance(cutoff_month, bool) or not isinstance(cutoff_month, int):
        raise InvalidCutoffMonth(cutoff_month)
    if cutoff_month < 1 or cutoff_month > 12:
        raise InvalidCutoffMonth(cutoff_month)
    return cutoff_month


class BlendPolicy(str, enum.Enum):
    """How an actual (``ist``) and a forecast (``fc``) series merge into one."""

    # Actuals up to and including the cutoff month, forecast afterwards.
    CUTOFF = "cutoff"
    # Actual where it is positive, forecast otherwise; ignores any cutoff.
    PRESENCE = "presence"


def blend_by_cutoff(ist: MonthSeries, fc: MonthSeries, cutoff_month: int) -> MonthSeries:
    cutoff_month = validate_cutoff_month(cutoff_month)
    return MonthSeries(
        tuple(ist[month] if month <= cutoff_month else fc[month] for month in MONTHS)
    )


def blend_by_presence(ist: MonthSeries, fc: MonthSeries) -> MonthSeries:
    return MonthSeries(tuple(ist[month] if ist[month] > 0 else fc[month] for month in MONTHS))


def blend(
    ist: MonthSeries,
    fc: MonthSeries,
    *,
    policy: BlendPolicy,
    cutoff_month: int | None = None,
) -> MonthSeries:
    if policy is BlendPolicy.CUTOFF:
        if cutoff_month is None:
            raise InvalidCutoffMonth(cutoff_month)
        return blend_by_cutoff(ist, fc, cutoff_month)
    return blend_by_presence(ist, fc)
