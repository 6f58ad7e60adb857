"""ORM model package."""

from finplan.models.entities import (
    ActualEntry,
    AppSetting,
    Employee,
    Entity,
    Kpi,
    KpiArea,
    MonthlyValue,
    PlanningEntry,
    Portfolio,
    Scenario,
)

__all__ = [
    "ActualEntry",
    "AppSetting",
    "Employee",
    "Entity",
    "Kpi",
    "KpiArea",
    "MonthlyValue",
    "PlanningEntry",
    "Portfolio",
    "Scenario",
]
