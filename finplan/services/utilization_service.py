"""Personnel utilization and revenue forecast roll-up.

Per employee and month the engine derives net available days and hours from the
working-days table and planned absences, the forecast revenue from the target and the
forecast percentage, and utilization from billable hours. Every roll-up (employee year,
portfolio, entity, company, monthly trend) sums revenue and hours over the underlying
monthly records first and only then divides, so small or zero denominators in single
months never distort the result.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

from finplan.core.errors import (
    EmployeeNotFound,
    ForecastAdjustmentUnavailable,
    InvalidAsOfMonth,
    PartialWriteFailure,
    PlanningCopyUnavailable,
)
from finplan.repositories.records import ActualRecord, EmployeeRecord, PlanningRecord, PortfolioRecord
from finplan.repositories.series_repository import SeriesRepository
from finplan.services.metrics import round_half_up, safe_ratio
from finplan.services.series import MONTH_LABELS, MONTHS

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MonthlyUtilization:
    employee_id: int
    entity_code: str
    month: int
    working_days: int
    portfolio_id: int | None
    target_revenue: float
    forecast_percent: float
    vacation_days: float
    internal_days: float
    sick_days: float
    training_days: float
    actual_revenue: float
    billable_hours: float
    daily_hours: float

    @property
    def absence_days(self) -> float:
        return self.vacation_days + self.internal_days + self.sick_days + self.training_days

    @property
    def net_days(self) -> float:
        # Not clamped: a negative value surfaces over-planned absence.
        return self.working_days - self.absence_days

    @property
    def available_hours(self) -> float:
        return self.net_days * self.daily_hours

    @property
    def forecast_revenue(self) -> float:
        return self.target_revenue * self.forecast_percent / 100

    @property
    def utilization_percent(self) -> float:
        return safe_ratio(self.billable_hours, self.available_hours) * 100


@dataclass(frozen=True, slots=True)
class UtilizationTotals:
    target_revenue: float = 0.0
    forecast_revenue: float = 0.0
    actual_revenue: float = 0.0
    working_days: float = 0.0
    absence_days: float = 0.0
    available_hours: float = 0.0
    billable_hours: float = 0.0

    @property
    def net_days(self) -> float:
        return self.working_days - self.absence_days

    @property
    def utilization_percent(self) -> float:
        return safe_ratio(self.billable_hours, self.available_hours) * 100

    @property
    def revenue_per_day(self) -> float:
        if self.net_days <= 0:
            return 0.0
        return safe_ratio(self.forecast_revenue, self.net_days)


def monthly_utilization(
    employee: EmployeeRecord,
    month: int,
    *,
    working_days: int,
    planning: PlanningRecord | None,
    actual: ActualRecord | None,
    default_forecast_percent: float,
) -> MonthlyUtilization:
    return MonthlyUtilization(
        employee_id=employee.id,
        entity_code=employee.entity_code,
        month=month,
        working_days=working_days,
        portfolio_id=planning.portfolio_id if planning else None,
        target_revenue=planning.target_revenue if planning else 0.0,
        forecast_percent=planning.forecast_percent if planning else default_forecast_percent,
        vacation_days=planning.vacation_days if planning else 0.0,
        internal_days=planning.internal_days if planning else 0.0,
        sick_days=planning.sick_days if planning else 0.0,
        training_days=planning.training_days if planning else 0.0,
        actual_revenue=actual.actual_revenue if actual else 0.0,
        billable_hours=actual.billable_hours if actual else 0.0,
        daily_hours=employee.weekly_hours / 5,
    )


def roll_up(months: Iterable[MonthlyUtilization]) -> UtilizationTotals:
    """Sum monthly records; ratios are derived from the sums."""

    totals = UtilizationTotals()
    for row in months:
        totals = UtilizationTotals(
            target_revenue=totals.target_revenue + row.target_revenue,
            forecast_revenue=totals.forecast_revenue + row.forecast_revenue,
            actual_revenue=totals.actual_revenue + row.actual_revenue,
            working_days=totals.working_days + row.working_days,
            absence_days=totals.absence_days + row.absence_days,
            available_hours=totals.available_hours + row.available_hours,
            billable_hours=totals.billable_hours + row.billable_hours,
        )
    return totals


class UtilizationEngine:
    def __init__(
        self,
        repository: SeriesRepository,
        *,
        working_days_per_month: Sequence[int],
        default_forecast_percent: float = 80.0,
        forecast_percent_floor: int = 50,
        forecast_percent_ceiling: int = 120,
    ) -> None:
        if len(working_days_per_month) != 12:
            raise ValueError("working_days_per_month must list exactly 12 values.")
        self.repository = repository
        self.working_days_per_month = tuple(int(days) for days in working_days_per_month)
        self.default_forecast_percent = default_forecast_percent
        self.forecast_percent_floor = forecast_percent_floor
        self.forecast_percent_ceiling = forecast_percent_ceiling

    # ---------- Per-employee months ----------
    def employee_months(
        self,
        employee: EmployeeRecord,
        planning: Iterable[PlanningRecord],
        actuals: Iterable[ActualRecord],
    ) -> list[MonthlyUtilization]:
        planning_by_month = {row.month: row for row in planning if row.employee_id == employee.id}
        actual_by_month = {row.month: row for row in actuals if row.employee_id == employee.id}
        return [
            monthly_utilization(
                employee,
                month,
                working_days=self.working_days_per_month[month - 1],
                planning=planning_by_month.get(month),
                actual=actual_by_month.get(month),
                default_forecast_percent=self.default_forecast_percent,
            )
            for month in MONTHS
        ]

    # ---------- Serialization ----------
    @staticmethod
    def serialize_totals(totals: UtilizationTotals) -> dict[str, float]:
        return {
            "target_revenue": totals.target_revenue,
            "forecast_revenue": totals.forecast_revenue,
            "actual_revenue": totals.actual_revenue,
            "available_days": totals.working_days,
            "planned_absence": totals.absence_days,
            "net_available_days": totals.net_days,
            "available_hours": totals.available_hours,
            "billable_hours": totals.billable_hours,
            "utilization_percent": totals.utilization_percent,
            "revenue_per_day": totals.revenue_per_day,
        }

    @staticmethod
    def serialize_month(row: MonthlyUtilization) -> dict[str, object]:
        return {
            "month": row.month,
            "working_days": row.working_days,
            "portfolio_id": row.portfolio_id,
            "target_revenue": row.target_revenue,
            "forecast_percent": row.forecast_percent,
            "forecast_revenue": row.forecast_revenue,
            "vacation_days": row.vacation_days,
            "internal_days": row.internal_days,
            "sick_days": row.sick_days,
            "training_days": row.training_days,
            "net_available_days": row.net_days,
            "available_hours": row.available_hours,
            "actual_revenue": row.actual_revenue,
            "billable_hours": row.billable_hours,
            "utilization_percent": row.utilization_percent,
        }

    # ---------- Summary ----------
    def assemble_utilization_summary(
        self,
        year: int,
        entity_filter: str | None = None,
        portfolio_filter: int | None = None,
    ) -> dict[str, object]:
        employees = self.repository.get_employees_for(entity_filter)
        planning = self.repository.get_planning_records(year)
        actuals = self.repository.get_actual_records(year)
        portfolios = self.repository.get_portfolios()

        planning_by_employee: dict[int, list[PlanningRecord]] = defaultdict(list)
        for row in planning:
            planning_by_employee[row.employee_id].append(row)
        actuals_by_employee: dict[int, list[ActualRecord]] = defaultdict(list)
        for row in actuals:
            actuals_by_employee[row.employee_id].append(row)

        employee_rows: list[dict[str, object]] = []
        scoped: list[tuple[EmployeeRecord, list[MonthlyUtilization]]] = []
        for employee in employees:
            months = self.employee_months(
                employee,
                planning_by_employee.get(employee.id, []),
                actuals_by_employee.get(employee.id, []),
            )
            if portfolio_filter is not None:
                months = [row for row in months if row.portfolio_id == portfolio_filter]
                if not months:
                    continue
            scoped.append((employee, months))
            employee_rows.append(
                {
                    "employee_id": employee.id,
                    "name": employee.display_name,
                    "entity_code": employee.entity_code,
                    "entity_name": employee.entity_name,
                    "weekly_hours": employee.weekly_hours,
                    "hourly_rate": employee.hourly_rate,
                    "totals": self.serialize_totals(roll_up(months)),
                    "monthly": [self.serialize_month(row) for row in months],
                }
            )

        all_months = [row for _, months in scoped for row in months]
        return {
            "year": year,
            "entity_filter": entity_filter,
            "portfolio_filter": portfolio_filter,
            "employees": employee_rows,
            "portfolios": self._portfolio_summary(portfolios, all_months),
            "entities": self._entity_summary(scoped),
            "company_totals": {"employee_count": len(scoped), **self.serialize_totals(roll_up(all_months))},
            "monthly_trend": [
                {
                    "month": month,
                    "label": label,
                    **self.serialize_totals(roll_up(row for row in all_months if row.month == month)),
                }
                for month, label in zip(MONTHS, MONTH_LABELS)
            ],
        }

    def _portfolio_summary(
        self,
        portfolios: list[PortfolioRecord],
        months: list[MonthlyUtilization],
    ) -> list[dict[str, object]]:
        rows = []
        for portfolio in portfolios:
            matching = [row for row in months if row.portfolio_id == portfolio.id]
            rows.append(
                {
                    "id": portfolio.id,
                    "code": portfolio.code,
                    "name": portfolio.display_name,
                    "color": portfolio.color,
                    "employee_count": len({row.employee_id for row in matching}),
                    "totals": self.serialize_totals(roll_up(matching)),
                }
            )
        return rows

    def _entity_summary(
        self,
        scoped: list[tuple[EmployeeRecord, list[MonthlyUtilization]]],
    ) -> list[dict[str, object]]:
        grouped: dict[str, list[tuple[EmployeeRecord, list[MonthlyUtilization]]]] = {}
        for employee, months in scoped:
            grouped.setdefault(employee.entity_code, []).append((employee, months))

        rows = []
        for entity_code, members in grouped.items():
            rows.append(
                {
                    "entity_code": entity_code,
                    "entity_name": members[0][0].entity_name,
                    "employee_count": len(members),
                    "totals": self.serialize_totals(roll_up(row for _, months in members for row in months)),
                }
            )
        rows.sort(key=lambda row: row["entity_name"] or row["entity_code"])
        return rows

    # ---------- Writes ----------
    def _ensure_employee(self, employee_id: int) -> EmployeeRecord:
        for employee in self.repository.get_employees_for(None):
            if employee.id == employee_id:
                return employee
        raise EmployeeNotFound(employee_id)

    def _write_months(self, operation: str, records: list[PlanningRecord]) -> list[int]:
        written: list[int] = []
        for record in records:
            try:
                self.repository.upsert_planning_record(record)
            except Exception as exc:
                raise PartialWriteFailure(operation, written) from exc
            written.append(record.month)
        return written

    def auto_adjust_forecast(self, employee_id: int, year: int, *, as_of_month: int) -> dict[str, object]:
        """Re-forecast the remaining months from the achievement rate so far.

        Completed months are those before ``as_of_month``; the rounded achievement
        rate, clamped to the configured floor and ceiling, becomes the forecast
        percentage of every planning record from ``as_of_month`` on. Re-running with
        unchanged actuals writes the same values.
        """

        if isinstance(as_of_month, bool) or not isinstance(as_of_month, int) or not 1 <= as_of_month <= 13:
            raise InvalidAsOfMonth(as_of_month)
        self._ensure_employee(employee_id)

        planning = {row.month: row for row in self.repository.get_planning_records(year, employee_id)}
        completed = [row for row in self.repository.get_actual_records(year, employee_id) if row.month < as_of_month]
        if not completed:
            raise ForecastAdjustmentUnavailable("No actuals recorded for completed months.")

        total_target = 0.0
        total_actual = 0.0
        for actual in completed:
            plan = planning.get(actual.month)
            if plan is not None and plan.target_revenue > 0:
                total_target += plan.target_revenue
                total_actual += actual.actual_revenue
        if total_target == 0:
            raise ForecastAdjustmentUnavailable("No target revenue planned for completed months.")

        achievement_rate = total_actual / total_target * 100
        new_forecast_percent = min(
            max(round_half_up(achievement_rate), self.forecast_percent_floor),
            self.forecast_percent_ceiling,
        )

        remaining = [
            replace(planning[month], forecast_percent=float(new_forecast_percent))
            for month in sorted(planning)
            if month >= as_of_month
        ]
        written = self._write_months("auto_adjust_forecast", remaining)
        logger.info(
            "Auto-adjusted forecast for employee %s/%s to %s%% (achievement %.1f%%, %d month(s)).",
            employee_id,
            year,
            new_forecast_percent,
            achievement_rate,
            len(written),
        )
        return {
            "employee_id": employee_id,
            "year": year,
            "achievement_rate": round(achievement_rate, 1),
            "new_forecast_percent": new_forecast_percent,
            "months_updated": len(written),
            "updated_months": written,
        }

    def copy_planning_year(self, employee_id: int, from_year: int, to_year: int) -> dict[str, object]:
        self._ensure_employee(employee_id)
        source = self.repository.get_planning_records(from_year, employee_id)
        if not source:
            raise PlanningCopyUnavailable(f"No planning records for employee {employee_id} in {from_year}.")

        written = self._write_months(
            "copy_planning_year",
            [replace(row, year=to_year) for row in sorted(source, key=lambda row: row.month)],
        )
        logger.info("Copied %d planning month(s) of employee %s from %s to %s.", len(written), employee_id, from_year, to_year)
        return {
            "employee_id": employee_id,
            "from_year": from_year,
            "to_year": to_year,
            "copied_months": len(written),
        }
