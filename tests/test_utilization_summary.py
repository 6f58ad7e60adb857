from __future__ import annotations

import pytest

from finplan.core.config import DEFAULT_WORKING_DAYS_PER_MONTH
from finplan.core.errors import (
    EmployeeNotFound,
    ForecastAdjustmentUnavailable,
    InvalidAsOfMonth,
    PartialWriteFailure,
    PlanningCopyUnavailable,
)
from finplan.repositories.records import (
    ActualRecord,
    EmployeeRecord,
    PlanningRecord,
    PortfolioRecord,
)
from finplan.services.utilization_service import UtilizationEngine


def _engine(repository) -> UtilizationEngine:
    return UtilizationEngine(repository, working_days_per_month=DEFAULT_WORKING_DAYS_PER_MONTH)


def _employee(repository, employee_id: int, entity_code: str = "rcc", weekly_hours: float = 40.0) -> None:
    repository.employees.append(
        EmployeeRecord(
            id=employee_id,
            entity_code=entity_code,
            weekly_hours=weekly_hours,
            entity_name=entity_code.upper(),
            first_name="Emp",
            last_name=str(employee_id),
        )
    )


def test_single_month_utilization(repository) -> None:
    _employee(repository, 1)
    repository.add_planning(PlanningRecord(employee_id=1, year=2026, month=1, vacation_days=2.0))
    repository.actuals.append(ActualRecord(employee_id=1, year=2026, month=1, billable_hours=80.0))

    payload = _engine(repository).assemble_utilization_summary(2026)
    january = payload["employees"][0]["monthly"][0]

    assert january["working_days"] == 22
    assert january["net_available_days"] == 20.0
    assert january["available_hours"] == 160.0
    assert january["utilization_percent"] == 50.0


def test_over_planned_absence_is_not_clamped(repository) -> None:
    _employee(repository, 1)
    repository.add_planning(PlanningRecord(employee_id=1, year=2026, month=2, vacation_days=15.0, sick_days=10.0))

    february = _engine(repository).assemble_utilization_summary(2026)["employees"][0]["monthly"][1]

    assert february["net_available_days"] == -5.0
    assert february["available_hours"] == -40.0
    assert february["utilization_percent"] == 0.0


def test_annual_utilization_is_ratio_of_sums(repository) -> None:
    _employee(repository, 1, weekly_hours=5.0)
    # One daily hour: month 1 offers 20 available hours, month 2 none.
    working_days = [20, 0] + [0] * 10
    repository.actuals.append(ActualRecord(employee_id=1, year=2026, month=1, billable_hours=10.0))

    engine = UtilizationEngine(repository, working_days_per_month=working_days)
    totals = engine.assemble_utilization_summary(2026)["employees"][0]["totals"]

    assert totals["available_hours"] == 20.0
    assert totals["billable_hours"] == 10.0
    assert totals["utilization_percent"] == 50.0


def test_forecast_revenue_and_company_roll_up(repository) -> None:
    _employee(repository, 1, "rcc")
    _employee(repository, 2, "ks")
    repository.add_planning(PlanningRecord(employee_id=1, year=2026, month=1, target_revenue=1000.0, forecast_percent=80.0))
    repository.add_planning(PlanningRecord(employee_id=2, year=2026, month=1, target_revenue=500.0, forecast_percent=100.0))
    repository.actuals.append(ActualRecord(employee_id=1, year=2026, month=1, actual_revenue=700.0, billable_hours=88.0))

    payload = _engine(repository).assemble_utilization_summary(2026)
    company = payload["company_totals"]

    assert company["employee_count"] == 2
    assert company["target_revenue"] == 1500.0
    assert company["forecast_revenue"] == 1300.0
    assert company["actual_revenue"] == 700.0
    assert company["available_days"] == 2 * sum(DEFAULT_WORKING_DAYS_PER_MONTH)
    assert payload["monthly_trend"][0]["billable_hours"] == 88.0
    assert payload["monthly_trend"][0]["utilization_percent"] == pytest.approx(88.0 / (2 * 22 * 8) * 100)
    assert [row["entity_code"] for row in payload["entities"]] == ["ks", "rcc"]


def test_portfolio_filter_keeps_matching_months_only(repository) -> None:
    repository.portfolios.extend(
        [
            PortfolioRecord(id=10, code="cloud", display_name="Cloud", color="#00f"),
            PortfolioRecord(id=20, code="sap", display_name="SAP", color="#f00"),
        ]
    )
    _employee(repository, 1)
    _employee(repository, 2)
    repository.add_planning(PlanningRecord(employee_id=1, year=2026, month=1, portfolio_id=10, target_revenue=100.0))
    repository.add_planning(PlanningRecord(employee_id=1, year=2026, month=2, portfolio_id=20, target_revenue=200.0))
    repository.add_planning(PlanningRecord(employee_id=2, year=2026, month=1, portfolio_id=20, target_revenue=50.0))

    payload = _engine(repository).assemble_utilization_summary(2026, portfolio_filter=10)

    assert [row["employee_id"] for row in payload["employees"]] == [1]
    assert payload["employees"][0]["totals"]["target_revenue"] == 100.0
    assert payload["employees"][0]["totals"]["available_days"] == 22
    cloud, sap = payload["portfolios"]
    assert cloud["employee_count"] == 1
    assert cloud["totals"]["target_revenue"] == 100.0
    assert sap["employee_count"] == 0


def test_unfiltered_portfolio_roll_up_sums_months(repository) -> None:
    repository.portfolios.append(PortfolioRecord(id=20, code="sap", display_name="SAP", color="#f00"))
    _employee(repository, 1)
    _employee(repository, 2)
    repository.add_planning(PlanningRecord(employee_id=1, year=2026, month=2, portfolio_id=20, target_revenue=200.0))
    repository.add_planning(PlanningRecord(employee_id=2, year=2026, month=1, portfolio_id=20, target_revenue=50.0))

    sap = _engine(repository).assemble_utilization_summary(2026)["portfolios"][0]

    assert sap["employee_count"] == 2
    assert sap["totals"]["target_revenue"] == 250.0
    assert sap["totals"]["available_days"] == 20 + 22


def _seed_forecast(repository) -> None:
    _employee(repository, 1)
    for month in range(1, 13):
        repository.add_planning(PlanningRecord(employee_id=1, year=2026, month=month, target_revenue=1000.0))
    for month in (1, 2, 3):
        repository.actuals.append(ActualRecord(employee_id=1, year=2026, month=month, actual_revenue=900.0))


def test_auto_adjust_writes_remaining_months(repository) -> None:
    _seed_forecast(repository)

    result = _engine(repository).auto_adjust_forecast(1, 2026, as_of_month=4)

    assert result["achievement_rate"] == 90.0
    assert result["new_forecast_percent"] == 90
    assert result["months_updated"] == 9
    assert result["updated_months"] == list(range(4, 13))
    assert repository.planning[(1, 2026, 3)].forecast_percent == 80.0
    assert repository.planning[(1, 2026, 4)].forecast_percent == 90.0


def test_auto_adjust_is_idempotent(repository) -> None:
    _seed_forecast(repository)
    engine = _engine(repository)

    first = engine.auto_adjust_forecast(1, 2026, as_of_month=4)
    second = engine.auto_adjust_forecast(1, 2026, as_of_month=4)

    assert first == second


@pytest.mark.parametrize(("actual", "expected"), [(100.0, 50), (5000.0, 120)])
def test_auto_adjust_clamps_rate(repository, actual: float, expected: int) -> None:
    _employee(repository, 1)
    repository.add_planning(PlanningRecord(employee_id=1, year=2026, month=1, target_revenue=1000.0))
    repository.add_planning(PlanningRecord(employee_id=1, year=2026, month=2, target_revenue=1000.0))
    repository.actuals.append(ActualRecord(employee_id=1, year=2026, month=1, actual_revenue=actual))

    result = _engine(repository).auto_adjust_forecast(1, 2026, as_of_month=2)

    assert result["new_forecast_percent"] == expected


def test_auto_adjust_surfaces_partial_write(repository) -> None:
    _seed_forecast(repository)
    repository.fail_after_writes = 2

    with pytest.raises(PartialWriteFailure) as exc_info:
        _engine(repository).auto_adjust_forecast(1, 2026, as_of_month=4)

    assert exc_info.value.months_written == [4, 5]
    repository.fail_after_writes = None
    result = _engine(repository).auto_adjust_forecast(1, 2026, as_of_month=4)
    assert result["months_updated"] == 9


def test_auto_adjust_preconditions(repository) -> None:
    _employee(repository, 1)
    engine = _engine(repository)

    with pytest.raises(EmployeeNotFound):
        engine.auto_adjust_forecast(99, 2026, as_of_month=4)
    with pytest.raises(InvalidAsOfMonth):
        engine.auto_adjust_forecast(1, 2026, as_of_month=14)
    with pytest.raises(ForecastAdjustmentUnavailable):
        engine.auto_adjust_forecast(1, 2026, as_of_month=4)

    repository.actuals.append(ActualRecord(employee_id=1, year=2026, month=1, actual_revenue=10.0))
    with pytest.raises(ForecastAdjustmentUnavailable):
        engine.auto_adjust_forecast(1, 2026, as_of_month=4)


def test_copy_planning_year(repository) -> None:
    _employee(repository, 1)
    repository.add_planning(
        PlanningRecord(employee_id=1, year=2025, month=3, target_revenue=300.0, vacation_days=1.0, notes="q1")
    )
    repository.add_planning(PlanningRecord(employee_id=1, year=2025, month=1, target_revenue=100.0))

    result = _engine(repository).copy_planning_year(1, 2025, 2026)

    assert result["copied_months"] == 2
    copied = repository.planning[(1, 2026, 3)]
    assert copied.target_revenue == 300.0
    assert copied.notes == "q1"
    with pytest.raises(PlanningCopyUnavailable):
        _engine(repository).copy_planning_year(1, 2024, 2026)


def test_entity_filter_scopes_every_roll_up(repository) -> None:
    _employee(repository, 1, "rcc")
    _employee(repository, 2, "ks")
    repository.add_planning(PlanningRecord(employee_id=1, year=2026, month=1, target_revenue=100.0))
    repository.add_planning(PlanningRecord(employee_id=2, year=2026, month=1, target_revenue=200.0))

    payload = _engine(repository).assemble_utilization_summary(2026, entity_filter="ks")

    assert payload["entity_filter"] == "ks"
    assert [row["employee_id"] for row in payload["employees"]] == [2]
    assert [row["entity_code"] for row in payload["entities"]] == ["ks"]
    assert payload["company_totals"]["employee_count"] == 1
    assert payload["company_totals"]["target_revenue"] == 200.0
    assert payload["monthly_trend"][0]["target_revenue"] == 200.0


def test_revenue_per_day_is_zero_without_net_days(repository) -> None:
    _employee(repository, 1)
    repository.add_planning(
        PlanningRecord(employee_id=1, year=2026, month=1, target_revenue=1000.0, forecast_percent=100.0, vacation_days=30.0)
    )

    payload = _engine(repository).assemble_utilization_summary(2026)
    january = payload["monthly_trend"][0]

    assert january["net_available_days"] == -8.0
    assert january["forecast_revenue"] == 1000.0
    assert january["revenue_per_day"] == 0.0
