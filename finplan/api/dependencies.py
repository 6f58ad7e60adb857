"""Request-scoped collaborators for the API routes."""

from fastapi import Depends
from sqlalchemy.orm import Session, sessionmaker

from finplan.core.config import Settings, get_settings
from finplan.db.dependencies import get_session_factory
from finplan.repositories.sql_repository import SqlSeriesRepository


def get_series_repository(
    session_factory: sessionmaker[Session] = Depends(get_session_factory),
) -> SqlSeriesRepository:
    return SqlSeriesRepository(session_factory)


def resolve_cutoff_month(
    requested: int | None,
    repository: SqlSeriesRepository,
    settings: Settings,
) -> int:
    """Request value, then the stored setting, then the configured default."""

    if requested is not None:
        return requested
    return repository.get_forecast_cutoff_month(settings.default_forecast_cutoff_month)
