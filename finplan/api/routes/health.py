"""Liveness and database readiness."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session, sessionmaker

from finplan.db.dependencies import get_session_factory

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def readiness(session_factory: sessionmaker[Session] = Depends(get_session_factory)) -> dict[str, str]:
    """Round-trip a trivial query so a dead database surfaces as a 500."""

    with session_factory() as session:
        session.execute(text("SELECT 1"))
    return {"status": "ok", "database": "ok"}
