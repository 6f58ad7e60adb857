"""Data-access contract consumed by the computation core."""

from __future__ import annotations

from typing import Protocol

from finplan.models.entities import KpiArea, Scenario
from finplan.repositories.records import (
    ActualRecord,
    EmployeeRecord,
    EntityRecord,
    KpiRecord,
    PlanningRecord,
    PortfolioRecord,
)


class SeriesRepository(Protocol):
    """Source of raw monthly facts and personnel-planning records.

    Reads are idempotent and side-effect free; absent rows are not errors.
    """

    def get_monthly_facts(
        self,
        year: int,
        entity_code: str,
        kpi_area: KpiArea,
        kpi_code: str,
        scenario: Scenario,
    ) -> list[tuple[int, float]]:
        """Return the stored ``(month, value)`` pairs; never rows of an aggregate entity."""
        ...

    def get_entities(self) -> list[EntityRecord]:
        """Return entities aggregate-first, then by display name."""
        ...

    def get_kpis(self) -> list[KpiRecord]: ...

    def get_employees_for(self, entity_code: str | None = None) -> list[EmployeeRecord]: ...

    def get_planning_records(self, year: int, employee_id: int | None = None) -> list[PlanningRecord]: ...

    def get_actual_records(self, year: int, employee_id: int | None = None) -> list[ActualRecord]: ...

    def get_portfolios(self) -> list[PortfolioRecord]:
        """Return active portfolios."""
        ...

    def upsert_planning_record(self, record: PlanningRecord) -> None:
        """Insert or replace the record keyed by (employee_id, year, month)."""
        ...
