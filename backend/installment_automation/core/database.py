"""Engine and session factory for the installment store.

Schema changes go through Alembic; nothing here creates tables.
"""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from installment_automation.core.config import settings


def engine_options(dsn: str) -> dict[str, Any]:
    # SQLite connections cross threads under the API threadpool
    if dsn.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.APP_DATABASE_DSN, **engine_options(settings.APP_DATABASE_DSN))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session, closed when the response is sent."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
