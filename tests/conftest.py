from __future__ import annotations

from collections.abc import Generator
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from finplan.core.config import Settings, get_settings
from finplan.db.base import Base
from finplan.db.dependencies import get_session_factory
import finplan.models.entities  # noqa: F401
from finplan.main import create_app
from finplan.models.entities import KpiArea, Scenario
from finplan.repositories.records import (
    ActualRecord,
    AggregateEntity,
    EmployeeRecord,
    EntityRecord,
    KpiRecord,
    LeafEntity,
    PlanningRecord,
    PortfolioRecord,
)
from finplan.repositories.sql_repository import SqlSeriesRepository


class InMemorySeriesRepository:
    """Dictionary-backed repository for exercising the computation core."""

    def __init__(self) -> None:
        self.entities: list[EntityRecord] = []
        self.kpis: list[KpiRecord] = []
        self.facts: dict[tuple[int, str, KpiArea, str, Scenario], list[tuple[int, float]]] = {}
        self.employees: list[EmployeeRecord] = []
        self.planning: dict[tuple[int, int, int], PlanningRecord] = {}
        self.actuals: list[ActualRecord] = []
        self.portfolios: list[PortfolioRecord] = []
        self.fact_calls = 0
        self.fail_after_writes: int | None = None
        self.writes = 0

    def add_leaf(self, code: str, display_name: str | None = None) -> LeafEntity:
        entity = LeafEntity(code=code, display_name=display_name or code.upper())
        self.entities.append(entity)
        return entity

    def add_group(self, code: str = "group", display_name: str = "Group") -> AggregateEntity:
        entity = AggregateEntity(code=code, display_name=display_name)
        self.entities.insert(0, entity)
        return entity

    def add_series(
        self,
        year: int,
        entity_code: str,
        kpi_area: KpiArea,
        kpi_code: str,
        scenario: Scenario,
        values: dict[int, float],
    ) -> None:
        self.facts[(year, entity_code, kpi_area, kpi_code, scenario)] = sorted(values.items())

    def get_monthly_facts(self, year, entity_code, kpi_area, kpi_code, scenario):
        self.fact_calls += 1
        return list(self.facts.get((year, entity_code, KpiArea(kpi_area), kpi_code, Scenario(scenario)), []))

    def get_entities(self) -> list[EntityRecord]:
        return list(self.entities)

    def get_kpis(self) -> list[KpiRecord]:
        return list(self.kpis)

    def get_employees_for(self, entity_code: str | None = None) -> list[EmployeeRecord]:
        return [row for row in self.employees if entity_code is None or row.entity_code == entity_code]

    def get_planning_records(self, year: int, employee_id: int | None = None) -> list[PlanningRecord]:
        rows = [
            row
            for row in self.planning.values()
            if row.year == year and (employee_id is None or row.employee_id == employee_id)
        ]
        return sorted(rows, key=lambda row: (row.employee_id, row.month))

    def get_actual_records(self, year: int, employee_id: int | None = None) -> list[ActualRecord]:
        return [
            row
            for row in self.actuals
            if row.year == year and (employee_id is None or row.employee_id == employee_id)
        ]

    def get_portfolios(self) -> list[PortfolioRecord]:
        return [row for row in self.portfolios if row.is_active]

    def add_planning(self, record: PlanningRecord) -> None:
        self.planning[(record.employee_id, record.year, record.month)] = record

    def upsert_planning_record(self, record: PlanningRecord) -> None:
        if self.fail_after_writes is not None and self.writes >= self.fail_after_writes:
            raise RuntimeError("storage unavailable")
        self.writes += 1
        self.planning[(record.employee_id, record.year, record.month)] = replace(record)


@pytest.fixture()
def repository() -> InMemorySeriesRepository:
    return InMemorySeriesRepository()


@pytest.fixture()
def session_factory() -> Generator[sessionmaker[Session], None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def sql_repository(session_factory: sessionmaker[Session]) -> SqlSeriesRepository:
    return SqlSeriesRepository(session_factory)


@pytest.fixture()
def client(session_factory: sessionmaker[Session]) -> Generator[TestClient, None, None]:
    app = create_app()

    # A single in-memory connection cannot serve parallel fetches.
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_settings] = lambda: Settings(series_fetch_max_workers=1)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
