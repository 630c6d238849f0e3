"""Engine, session factory and declarative base for the account store."""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from flowauth.config import get_settings


def engine_options(url: str, echo: bool = False) -> dict[str, Any]:
    """Connection options for a database URL.

    SQLite connections are shared across the threadpool FastAPI runs sync
    handlers in; server databases get a liveness check on checkout.
    """
    if url.startswith("sqlite"):
        return {"echo": echo, "connect_args": {"check_same_thread": False}}
    return {"echo": echo, "pool_pre_ping": True}


settings = get_settings()
engine = create_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL, echo=settings.DEBUG))
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


def create_tables() -> None:
    """Create missing tables directly. Development only; deployments run alembic."""
    import flowauth.models.user  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
