"""kpi fact schema

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "entities",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_aggregate", sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        "kpis",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("area", sa.String(length=32), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.UniqueConstraint("area", "code", name="uq_kpis_area_code"),
        sa.CheckConstraint("area IN ('revenue', 'profit', 'headcount')", name="ck_kpis_area"),
    )

    op.create_table(
        "values_monthly",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("entity_id", sa.Integer(), sa.ForeignKey("entities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("kpi_id", sa.Integer(), sa.ForeignKey("kpis.id", ondelete="CASCADE"), nullable=False),
        sa.Column("scenario", sa.String(length=32), nullable=False),
        sa.Column("value", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("month >= 1 AND month <= 12", name="ck_values_monthly_month_range"),
        sa.CheckConstraint(
            "scenario IN ('plan', 'ist', 'fc', 'prior_year', 'prior_year_kum')",
            name="ck_values_monthly_scenario",
        ),
        sa.UniqueConstraint("year", "month", "entity_id", "kpi_id", "scenario", name="uq_values_monthly_key"),
    )
    op.create_index("ix_values_monthly_lookup", "values_monthly", ["year", "kpi_id", "scenario", "entity_id"])

    op.create_table(
        "app_settings",
        sa.Column("key", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("value", sa.String(length=1024), nullable=False),
    )

    op.create_table(
        "portfolios",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("color", sa.String(length=32), nullable=False, server_default="#6b7280"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("entity_id", sa.Integer(), sa.ForeignKey("entities.id"), nullable=False),
        sa.Column("first_name", sa.String(length=128), nullable=False),
        sa.Column("last_name", sa.String(length=128), nullable=False),
        sa.Column("weekly_hours", sa.Float(), nullable=False, server_default=sa.text("40")),
        sa.Column("hourly_rate", sa.Float(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_employees_entity_id", "employees", ["entity_id"])

    op.create_table(
        "planning_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employees.id"), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("portfolio_id", sa.Integer(), sa.ForeignKey("portfolios.id"), nullable=True),
        sa.Column("target_revenue", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("forecast_percent", sa.Float(), nullable=False, server_default=sa.text("80")),
        sa.Column("vacation_days", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("internal_days", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("sick_days", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("training_days", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.String(length=2000), nullable=True),
        sa.CheckConstraint("month >= 1 AND month <= 12", name="ck_planning_entries_month_range"),
        sa.UniqueConstraint("employee_id", "year", "month", name="uq_planning_entries_employee_month"),
    )
    op.create_index("ix_planning_entries_year_portfolio", "planning_entries", ["year", "portfolio_id"])

    op.create_table(
        "actual_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employees.id"), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("actual_revenue", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("billable_hours", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.CheckConstraint("month >= 1 AND month <= 12", name="ck_actual_entries_month_range"),
        sa.UniqueConstraint("employee_id", "year", "month", name="uq_actual_entries_employee_month"),
    )


def downgrade() -> None:
    op.drop_table("actual_entries")
    op.drop_index("ix_planning_entries_year_portfolio", table_name="planning_entries")
    op.drop_table("planning_entries")
    op.drop_index("ix_employees_entity_id", table_name="employees")
    op.drop_table("employees")
    op.drop_table("portfolios")
    op.drop_table("app_settings")
    op.drop_index("ix_values_monthly_lookup", table_name="values_monthly")
    op.drop_table("values_monthly")
    op.drop_table("kpis")
    op.drop_table("entities")
