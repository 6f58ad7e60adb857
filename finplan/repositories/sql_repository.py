"""SQLAlchemy implementation of the series repository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, select
from sqlalchemy.orm import Session, sessionmaker

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

FORECAST_CUTOFF_SETTING = "forecast_cutoff_month"


class SqlSeriesRepository:
    """Persistence operations backing the computation core.

    Every call opens its own short-lived session so that concurrent reads issued by the
    series fan-out never share a Session, and every write commits on its own.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    # ---------- Facts ----------
    def get_monthly_facts(
        self,
        year: int,
        entity_code: str,
        kpi_area: KpiArea,
        kpi_code: str,
        scenario: Scenario,
    ) -> list[tuple[int, float]]:
        with self.session_factory() as session:
            rows = session.execute(
                select(MonthlyValue.month, MonthlyValue.value)
                .join(Entity, Entity.id == MonthlyValue.entity_id)
                .join(Kpi, Kpi.id == MonthlyValue.kpi_id)
                .where(
                    and_(
                        MonthlyValue.year == year,
                        MonthlyValue.scenario == Scenario(scenario).value,
                        Entity.code == entity_code,
                        Entity.is_aggregate.is_(False),
                        Kpi.area == KpiArea(kpi_area).value,
                        Kpi.code == kpi_code,
                    )
                )
                .order_by(MonthlyValue.month.asc())
            ).all()
        return [(int(month), float(value)) for month, value in rows]

    def upsert_fact(
        self,
        *,
        year: int,
        month: int,
        entity_code: str,
        kpi_area: KpiArea,
        kpi_code: str,
        scenario: Scenario,
        value: float,
    ) -> None:
        """Write one fact; the last write for a key wins."""

        with self.session_factory() as session:
            entity = session.scalar(select(Entity).where(Entity.code == entity_code))
            if entity is None:
                raise LookupError(f"Unknown entity code {entity_code!r}.")
            if entity.is_aggregate:
                raise ValueError("Aggregate entity series are derived and cannot be stored.")
            kpi = session.scalar(
                select(Kpi).where(and_(Kpi.area == KpiArea(kpi_area).value, Kpi.code == kpi_code))
            )
            if kpi is None:
                raise LookupError(f"Unknown KPI {kpi_area}/{kpi_code}.")

            existing = session.scalar(
                select(MonthlyValue).where(
                    and_(
                        MonthlyValue.year == year,
                        MonthlyValue.month == month,
                        MonthlyValue.entity_id == entity.id,
                        MonthlyValue.kpi_id == kpi.id,
                        MonthlyValue.scenario == Scenario(scenario).value,
                    )
                )
            )
            if existing is None:
                session.add(
                    MonthlyValue(
                        year=year,
                        month=month,
                        entity_id=entity.id,
                        kpi_id=kpi.id,
                        scenario=Scenario(scenario).value,
                        value=float(value),
                        updated_at=datetime.utcnow(),
                    )
                )
            else:
                existing.value = float(value)
                existing.updated_at = datetime.utcnow()
            session.commit()

    def get_available_years(self) -> list[int]:
        with self.session_factory() as session:
            years = session.scalars(select(MonthlyValue.year).distinct().order_by(MonthlyValue.year.desc())).all()
        return [int(year) for year in years]

    # ---------- Dimensions ----------
    def get_entities(self) -> list[EntityRecord]:
        with self.session_factory() as session:
            rows = session.scalars(
                select(Entity).order_by(
                    Entity.is_aggregate.desc(),
                    Entity.sort_order.asc(),
                    Entity.display_name.asc(),
                )
            ).all()
            return [
                AggregateEntity(code=row.code, display_name=row.display_name)
                if row.is_aggregate
                else LeafEntity(code=row.code, display_name=row.display_name)
                for row in rows
            ]

    def get_kpis(self) -> list[KpiRecord]:
        with self.session_factory() as session:
            rows = session.scalars(select(Kpi).order_by(Kpi.area.asc(), Kpi.code.asc())).all()
            return [KpiRecord(area=KpiArea(row.area), code=row.code, display_name=row.display_name) for row in rows]

    def get_portfolios(self) -> list[PortfolioRecord]:
        with self.session_factory() as session:
            rows = session.scalars(
                select(Portfolio).where(Portfolio.is_active.is_(True)).order_by(Portfolio.display_name.asc())
            ).all()
            return [
                PortfolioRecord(
                    id=row.id,
                    code=row.code,
                    display_name=row.display_name,
                    color=row.color,
                    is_active=row.is_active,
                )
                for row in rows
            ]

    # ---------- Personnel planning ----------
    def get_employees_for(self, entity_code: str | None = None) -> list[EmployeeRecord]:
        conditions = [Employee.is_active.is_(True)]
        if entity_code:
            conditions.append(Entity.code == entity_code)
        with self.session_factory() as session:
            rows = session.execute(
                select(Employee, Entity.code, Entity.display_name)
                .join(Entity, Entity.id == Employee.entity_id)
                .where(and_(*conditions))
                .order_by(Employee.last_name.asc(), Employee.first_name.asc(), Employee.id.asc())
            ).all()
            return [
                EmployeeRecord(
                    id=employee.id,
                    entity_code=code,
                    weekly_hours=float(employee.weekly_hours),
                    hourly_rate=float(employee.hourly_rate) if employee.hourly_rate is not None else None,
                    entity_name=display_name,
                    first_name=employee.first_name,
                    last_name=employee.last_name,
                )
                for employee, code, display_name in rows
            ]

    def get_planning_records(self, year: int, employee_id: int | None = None) -> list[PlanningRecord]:
        conditions = [PlanningEntry.year == year]
        if employee_id is not None:
            conditions.append(PlanningEntry.employee_id == employee_id)
        with self.session_factory() as session:
            rows = session.scalars(
                select(PlanningEntry)
                .where(and_(*conditions))
                .order_by(PlanningEntry.employee_id.asc(), PlanningEntry.month.asc())
            ).all()
            return [self._planning_record(row) for row in rows]

    def get_actual_records(self, year: int, employee_id: int | None = None) -> list[ActualRecord]:
        conditions = [ActualEntry.year == year]
        if employee_id is not None:
            conditions.append(ActualEntry.employee_id == employee_id)
        with self.session_factory() as session:
            rows = session.scalars(
                select(ActualEntry)
                .where(and_(*conditions))
                .order_by(ActualEntry.employee_id.asc(), ActualEntry.month.asc())
            ).all()
            return [
                ActualRecord(
                    employee_id=row.employee_id,
                    year=row.year,
                    month=row.month,
                    actual_revenue=float(row.actual_revenue),
                    billable_hours=float(row.billable_hours),
                )
                for row in rows
            ]

    def upsert_planning_record(self, record: PlanningRecord) -> None:
        with self.session_factory() as session:
            existing = session.scalar(
                select(PlanningEntry).where(
                    and_(
                        PlanningEntry.employee_id == record.employee_id,
                        PlanningEntry.year == record.year,
                        PlanningEntry.month == record.month,
                    )
                )
            )
            if existing is None:
                existing = PlanningEntry(
                    employee_id=record.employee_id,
                    year=record.year,
                    month=record.month,
                )
                session.add(existing)
            existing.portfolio_id = record.portfolio_id
            existing.target_revenue = record.target_revenue
            existing.forecast_percent = record.forecast_percent
            existing.vacation_days = record.vacation_days
            existing.internal_days = record.internal_days
            existing.sick_days = record.sick_days
            existing.training_days = record.training_days
            existing.notes = record.notes
            session.commit()

    @staticmethod
    def _planning_record(row: PlanningEntry) -> PlanningRecord:
        return PlanningRecord(
            employee_id=row.employee_id,
            year=row.year,
            month=row.month,
            portfolio_id=row.portfolio_id,
            target_revenue=float(row.target_revenue),
            forecast_percent=float(row.forecast_percent),
            vacation_days=float(row.vacation_days),
            internal_days=float(row.internal_days),
            sick_days=float(row.sick_days),
            training_days=float(row.training_days),
            notes=row.notes,
        )

    # ---------- Settings ----------
    def get_forecast_cutoff_month(self, default: int) -> int:
        with self.session_factory() as session:
            row = session.get(AppSetting, FORECAST_CUTOFF_SETTING)
            raw = row.value if row is not None else None
        if raw is None:
            return default
        try:
            month = int(raw)
        except ValueError:
            return default
        if month < 1 or month > 12:
            return default
        return month

    def set_forecast_cutoff_month(self, month: int) -> None:
        with self.session_factory() as session:
            row = session.get(AppSetting, FORECAST_CUTOFF_SETTING)
            if row is None:
                session.add(AppSetting(key=FORECAST_CUTOFF_SETTING, value=str(month)))
            else:
                row.value = str(month)
            session.commit()
