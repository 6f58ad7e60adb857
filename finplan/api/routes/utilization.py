"""Personnel utilization endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from finplan.api.dependencies import get_series_repository
from finplan.core.config import Settings, get_settings
from finplan.repositories.sql_repository import SqlSeriesRepository
from finplan.services.utilization_service import UtilizationEngine

router = APIRouter(prefix="/utilization", tags=["utilization"])


class AutoAdjustPayload(BaseModel):
    employee_id: int = Field(ge=1)
    year: int = Field(ge=2000, le=2100)
    as_of_month: int | None = Field(default=None, ge=1, le=13)


class PlanningCopyPayload(BaseModel):
    employee_id: int = Field(ge=1)
    from_year: int = Field(ge=2000, le=2100)
    to_year: int = Field(ge=2000, le=2100)


def _engine(repository: SqlSeriesRepository, settings: Settings) -> UtilizationEngine:
    return UtilizationEngine(
        repository,
        working_days_per_month=settings.working_days_per_month,
        default_forecast_percent=settings.default_forecast_percent,
        forecast_percent_floor=settings.forecast_percent_floor,
        forecast_percent_ceiling=settings.forecast_percent_ceiling,
    )


def _default_as_of_month(year: int, today: date) -> int:
    # Past years are complete; future years have no completed month yet.
    if year < today.year:
        return 13
    if year > today.year:
        return 1
    return today.month


@router.get("/summary")
def get_utilization_summary(
    year: int = Query(ge=2000, le=2100),
    entity_code: str | None = None,
    portfolio_id: int | None = None,
    repository: SqlSeriesRepository = Depends(get_series_repository),
    settings: Settings = Depends(get_settings),
) -> dict[str, object]:
    return _engine(repository, settings).assemble_utilization_summary(year, entity_code, portfolio_id)


@router.post("/forecast/auto-adjust")
def post_auto_adjust_forecast(
    payload: AutoAdjustPayload,
    repository: SqlSeriesRepository = Depends(get_series_repository),
    settings: Settings = Depends(get_settings),
) -> dict[str, object]:
    as_of_month = payload.as_of_month or _default_as_of_month(payload.year, date.today())
    return _engine(repository, settings).auto_adjust_forecast(
        payload.employee_id,
        payload.year,
        as_of_month=as_of_month,
    )


@router.post("/planning/copy")
def post_copy_planning_year(
    payload: PlanningCopyPayload,
    repository: SqlSeriesRepository = Depends(get_series_repository),
    settings: Settings = Depends(get_settings),
) -> dict[str, object]:
    return _engine(repository, settings).copy_planning_year(
        payload.employee_id,
        payload.from_year,
        payload.to_year,
    )
