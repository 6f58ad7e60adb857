"""Workbook sheet endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from finplan.api.dependencies import get_series_repository, resolve_cutoff_month
from finplan.core.config import Settings, get_settings
from finplan.models.entities import KpiArea
from finplan.repositories.sql_repository import SqlSeriesRepository
from finplan.services.workbook_service import WorkbookAssembler

router = APIRouter(prefix="/workbook", tags=["workbook"])


@router.get("/{sheet}")
def get_workbook_sheet(
    sheet: KpiArea,
    year: int = Query(ge=2000, le=2100),
    cutoff_month: int | None = Query(default=None, ge=1, le=12),
    repository: SqlSeriesRepository = Depends(get_series_repository),
    settings: Settings = Depends(get_settings),
) -> dict[str, object]:
    assembler = WorkbookAssembler(repository, max_workers=settings.series_fetch_max_workers)
    return assembler.assemble_workbook_sheet(
        sheet,
        year,
        resolve_cutoff_month(cutoff_month, repository, settings),
    )
