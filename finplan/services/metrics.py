"""Derived ratios. Every function is total: a zero denominator yields 0.0."""

from __future__ import annotations

import math
from dataclasses import dataclass

from finplan.services.series import MonthSeries


def safe_ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


@dataclass(frozen=True, slots=True)
class Variance:
    abs: float
    pct: float


def variance(actual: float, plan: float) -> Variance:
    delta = actual - plan
    return Variance(abs=delta, pct=safe_ratio(delta, abs(plan)) * 100)


def margin(ebit: float, revenue: float) -> float:
    return safe_ratio(ebit, revenue) * 100


def revenue_per_head(revenue: float, headcount: float) -> float:
    return safe_ratio(revenue, headcount)


def yoy_change(current: float, prior: float) -> float:
    return safe_ratio(current - prior, abs(prior)) * 100


def monthly_margin(ebit: MonthSeries, revenue: MonthSeries) -> MonthSeries:
    """Margin month by month; not to be averaged into an annual figure."""

    return MonthSeries(tuple(margin(e, r) for e, r in zip(ebit, revenue)))


def monthly_revenue_per_head(revenue: MonthSeries, headcount: MonthSeries) -> MonthSeries:
    return MonthSeries(tuple(revenue_per_head(r, h) for r, h in zip(revenue, headcount)))
