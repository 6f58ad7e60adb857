"""Reference data and stored defaults."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from finplan.api.dependencies import get_series_repository, resolve_cutoff_month
from finplan.core.config import Settings, get_settings
from finplan.repositories.sql_repository import SqlSeriesRepository

router = APIRouter(tags=["settings"])


class ForecastCutoffPayload(BaseModel):
    cutoff_month: int = Field(ge=1, le=12)


@router.get("/years")
def get_years(repository: SqlSeriesRepository = Depends(get_series_repository)) -> dict[str, object]:
    return {"available": repository.get_available_years()}


@router.get("/settings/forecast-cutoff")
def get_forecast_cutoff(
    repository: SqlSeriesRepository = Depends(get_series_repository),
    settings: Settings = Depends(get_settings),
) -> dict[str, int]:
    return {"cutoff_month": resolve_cutoff_month(None, repository, settings)}


@router.put("/settings/forecast-cutoff")
def put_forecast_cutoff(
    payload: ForecastCutoffPayload,
    repository: SqlSeriesRepository = Depends(get_series_repository),
) -> dict[str, int]:
    repository.set_forecast_cutoff_month(payload.cutoff_month)
    return {"cutoff_month": payload.cutoff_month}
