"""ORM entities for the KPI fact store and personnel planning."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from finplan.db.base import Base


class Scenario(str, enum.Enum):
    PLAN = "plan"
    IST = "ist"
    FC = "fc"
    PRIOR_YEAR = "prior_year"
    PRIOR_YEAR_KUM = "prior_year_kum"


class KpiArea(str, enum.Enum):
    REVENUE = "revenue"
    PROFIT = "profit"
    HEADCOUNT = "headcount"


class Entity(Base):
    __tablename__ = "entities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_aggregate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Kpi(Base):
    __tablename__ = "kpis"
    __table_args__ = (UniqueConstraint("area", "code", name="uq_kpis_area_code"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    area: Mapped[str] = mapped_column(String(32), nullable=False)
    code: Mapped[str] = mapped_column(String(64), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)


class MonthlyValue(Base):
    __tablename__ = "values_monthly"
    __table_args__ = (
        CheckConstraint("month >= 1 AND month <= 12", name="ck_values_monthly_month_range"),
        UniqueConstraint(
            "year",
            "month",
            "entity_id",
            "kpi_id",
            "scenario",
            name="uq_values_monthly_key",
        ),
        Index("ix_values_monthly_lookup", "year", "kpi_id", "scenario", "entity_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, ForeignKey("entities.id", ondelete="CASCADE"), nullable=False)
    kpi_id: Mapped[int] = mapped_column(Integer, ForeignKey("kpis.id", ondelete="CASCADE"), nullable=False)
    scenario: Mapped[str] = mapped_column(String(32), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class AppSetting(Base):
    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(String(1024), nullable=False)


class Portfolio(Base):
    __tablename__ = "portfolios"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    color: Mapped[str] = mapped_column(String(32), nullable=False, default="#6b7280")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Employee(Base):
    __tablename__ = "employees"
    __table_args__ = (Index("ix_employees_entity_id", "entity_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_id: Mapped[int] = mapped_column(Integer, ForeignKey("entities.id"), nullable=False)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    weekly_hours: Mapped[float] = mapped_column(Float, nullable=False, default=40.0)
    hourly_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class PlanningEntry(Base):
    __tablename__ = "planning_entries"
    __table_args__ = (
        CheckConstraint("month >= 1 AND month <= 12", name="ck_planning_entries_month_range"),
        UniqueConstraint("employee_id", "year", "month", name="uq_planning_entries_employee_month"),
        Index("ix_planning_entries_year_portfolio", "year", "portfolio_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(Integer, ForeignKey("employees.id"), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    portfolio_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("portfolios.id"), nullable=True)
    target_revenue: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    forecast_percent: Mapped[float] = mapped_column(Float, nullable=False, default=80.0)
    vacation_days: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    internal_days: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    sick_days: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    training_days: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)


class ActualEntry(Base):
    __tablename__ = "actual_entries"
    __table_args__ = (
        CheckConstraint("month >= 1 AND month <= 12", name="ck_actual_entries_month_range"),
        UniqueConstraint("employee_id", "year", "month", name="uq_actual_entries_employee_month"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(Integer, ForeignKey("employees.id"), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    actual_revenue: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    billable_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
