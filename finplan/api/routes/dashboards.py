"""Dashboard, comparison and alert endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from finplan.api.dependencies import get_series_repository, resolve_cutoff_month
from finplan.core.config import Settings, get_settings
from finplan.repositories.sql_repository import SqlSeriesRepository
from finplan.services.comparison_service import ComparisonAssembler
from finplan.services.dashboard_service import DashboardAssembler

router = APIRouter(tags=["dashboards"])


@router.get("/dashboard/{entity_code}")
def get_dashboard(
    entity_code: str,
    year: int = Query(ge=2000, le=2100),
    cutoff_month: int | None = Query(default=None, ge=1, le=12),
    repository: SqlSeriesRepository = Depends(get_series_repository),
    settings: Settings = Depends(get_settings),
) -> dict[str, object]:
    assembler = DashboardAssembler(repository, max_workers=settings.series_fetch_max_workers)
    return assembler.assemble_dashboard(
        entity_code,
        year,
        resolve_cutoff_month(cutoff_month, repository, settings),
    )


@router.get("/compare")
def get_comparison(
    entities: str = Query(default=""),
    year: int = Query(ge=2000, le=2100),
    month_from: int = Query(default=1, ge=1, le=12),
    month_to: int = Query(default=12, ge=1, le=12),
    repository: SqlSeriesRepository = Depends(get_series_repository),
    settings: Settings = Depends(get_settings),
) -> dict[str, object]:
    codes = [code.strip() for code in entities.split(",") if code.strip()]
    assembler = ComparisonAssembler(repository, max_workers=settings.series_fetch_max_workers)
    return assembler.assemble_comparison(codes, year, month_from, month_to)


@router.get("/alerts")
def get_variance_alerts(
    year: int = Query(ge=2000, le=2100),
    threshold: float | None = Query(default=None, ge=0),
    repository: SqlSeriesRepository = Depends(get_series_repository),
    settings: Settings = Depends(get_settings),
) -> dict[str, object]:
    assembler = ComparisonAssembler(repository, max_workers=settings.series_fetch_max_workers)
    return assembler.variance_alerts(
        year,
        threshold_percent=threshold if threshold is not None else settings.alert_variance_threshold_percent,
        limit=settings.alert_limit,
    )
