"""Database engine setup.

For test runs (ENV=test) the engine is an in-memory SQLite database shared
across connections; tests rebind ``SessionLocal`` to their own engine.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from paynudge.core.config import settings

raw_url = settings.DATABASE_URL or "sqlite:///./storage/dev.db"

if raw_url.startswith("sqlite"):
    if raw_url == "sqlite:///:memory:":
        raw_url = "sqlite:///file:paynudge_db?mode=memory&cache=shared&uri=true"
    engine = create_engine(raw_url, future=True, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):  # pragma: no cover - driver hook
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
else:
    engine = create_engine(
        raw_url,
        future=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True,
    )
SessionLocal = sessionmaker(bind=engine, class_=Session, expire_on_commit=False, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
