"""Read-only records handed from repositories to the computation core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from finplan.models.entities import KpiArea


@dataclass(frozen=True, slots=True)
class LeafEntity:
    """Business unit whose series are stored as facts."""

    code: str
    display_name: str


@dataclass(frozen=True, slots=True)
class AggregateEntity:
    """Group entity whose series are always the sum of every leaf entity."""

    code: str
    display_name: str


EntityRecord = Union[LeafEntity, AggregateEntity]


@dataclass(frozen=True, slots=True)
class KpiRef:
    area: KpiArea
    code: str


@dataclass(frozen=True, slots=True)
class KpiRecord:
    area: KpiArea
    code: str
    display_name: str

    @property
    def ref(self) -> KpiRef:
        return KpiRef(area=self.area, code=self.code)


@dataclass(frozen=True, slots=True)
class EmployeeRecord:
    id: int
    entity_code: str
    weekly_hours: float
    hourly_rate: float | None = None
    entity_name: str = ""
    first_name: str = ""
    last_name: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or f"#{self.id}"


@dataclass(frozen=True, slots=True)
class PlanningRecord:
    employee_id: int
    year: int
    month: int
    portfolio_id: int | None = None
    target_revenue: float = 0.0
    forecast_percent: float = 80.0
    vacation_days: float = 0.0
    internal_days: float = 0.0
    sick_days: float = 0.0
    training_days: float = 0.0
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class ActualRecord:
    employee_id: int
    year: int
    month: int
    actual_revenue: float = 0.0
    billable_hours: float = 0.0


@dataclass(frozen=True, slots=True)
class PortfolioRecord:
    id: int
    code: str
    display_name: str
    color: str
    is_active: bool = True
