"""Database dependencies for FastAPI endpoints."""

from sqlalchemy.orm import Session, sessionmaker


def get_session_factory() -> sessionmaker[Session]:
    """Return the session factory repositories open short-lived sessions from."""

    from finplan.db.session import SessionLocal

    return SessionLocal
