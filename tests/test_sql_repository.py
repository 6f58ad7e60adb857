from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from finplan.models.entities import AppSetting, Employee, Entity, Kpi, KpiArea, Scenario
from finplan.repositories.records import AggregateEntity, LeafEntity, PlanningRecord
from finplan.repositories.sql_repository import SqlSeriesRepository


def _seed_dimensions(db: Session) -> None:
    db.add_all(
        [
            Entity(code="group", display_name="Group", sort_order=0, is_aggregate=True),
            Entity(code="rcc", display_name="RCC", sort_order=2),
            Entity(code="ks", display_name="KS", sort_order=1),
            Kpi(area=KpiArea.REVENUE.value, code="revenue", display_name="Revenue"),
        ]
    )
    db.commit()


def test_entities_are_aggregate_first(db_session: Session, sql_repository: SqlSeriesRepository) -> None:
    _seed_dimensions(db_session)

    entities = sql_repository.get_entities()

    assert entities == [
        AggregateEntity(code="group", display_name="Group"),
        LeafEntity(code="ks", display_name="KS"),
        LeafEntity(code="rcc", display_name="RCC"),
    ]


def test_fact_upsert_last_write_wins(db_session: Session, sql_repository: SqlSeriesRepository) -> None:
    _seed_dimensions(db_session)

    for value in (1.0, 2.5):
        sql_repository.upsert_fact(
            year=2026,
            month=3,
            entity_code="rcc",
            kpi_area=KpiArea.REVENUE,
            kpi_code="revenue",
            scenario=Scenario.IST,
            value=value,
        )

    assert sql_repository.get_monthly_facts(2026, "rcc", KpiArea.REVENUE, "revenue", Scenario.IST) == [(3, 2.5)]
    assert sql_repository.get_monthly_facts(2026, "rcc", KpiArea.REVENUE, "revenue", Scenario.FC) == []
    assert sql_repository.get_monthly_facts(2026, "nope", KpiArea.REVENUE, "revenue", Scenario.IST) == []
    assert sql_repository.get_available_years() == [2026]


def test_aggregate_facts_cannot_be_stored(db_session: Session, sql_repository: SqlSeriesRepository) -> None:
    _seed_dimensions(db_session)

    with pytest.raises(ValueError):
        sql_repository.upsert_fact(
            year=2026,
            month=1,
            entity_code="group",
            kpi_area=KpiArea.REVENUE,
            kpi_code="revenue",
            scenario=Scenario.PLAN,
            value=1.0,
        )
    with pytest.raises(LookupError):
        sql_repository.upsert_fact(
            year=2026,
            month=1,
            entity_code="rcc",
            kpi_area=KpiArea.PROFIT,
            kpi_code="ebit",
            scenario=Scenario.PLAN,
            value=1.0,
        )


def test_planning_upsert_round_trip(db_session: Session, sql_repository: SqlSeriesRepository) -> None:
    _seed_dimensions(db_session)
    rcc = db_session.query(Entity).filter_by(code="rcc").one()
    employee = Employee(entity_id=rcc.id, first_name="Ada", last_name="Lovelace", weekly_hours=32.0)
    db_session.add(employee)
    db_session.commit()

    sql_repository.upsert_planning_record(PlanningRecord(employee_id=employee.id, year=2026, month=5, target_revenue=10.0))
    sql_repository.upsert_planning_record(
        PlanningRecord(employee_id=employee.id, year=2026, month=5, target_revenue=20.0, forecast_percent=95.0)
    )

    records = sql_repository.get_planning_records(2026, employee.id)
    assert len(records) == 1
    assert records[0].target_revenue == 20.0
    assert records[0].forecast_percent == 95.0

    employees = sql_repository.get_employees_for("rcc")
    assert [row.display_name for row in employees] == ["Ada Lovelace"]
    assert employees[0].entity_name == "RCC"
    assert sql_repository.get_employees_for("ks") == []


def test_forecast_cutoff_setting(db_session: Session, sql_repository: SqlSeriesRepository) -> None:
    assert sql_repository.get_forecast_cutoff_month(12) == 12

    sql_repository.set_forecast_cutoff_month(7)
    assert sql_repository.get_forecast_cutoff_month(12) == 7

    db_session.merge(AppSetting(key="forecast_cutoff_month", value="garbage"))
    db_session.commit()
    assert sql_repository.get_forecast_cutoff_month(12) == 12
