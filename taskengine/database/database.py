"""Database connection and session management for taskengine.

Persistence is the engine's external collaborator: it supplies task snapshots
and stores accepted mutations. Supports local SQLite (default) and any other
SQLAlchemy URL via `DATABASE_URL`.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from taskengine.config import settings

DATABASE_URL = settings.DATABASE_URL


def _is_sqlite_url(database_url: str) -> bool:
    return "sqlite" in (database_url or "")


def get_engine_kwargs(database_url: str) -> dict:
    """Return deterministic create_engine kwargs for a DB URL.

    This is separated to allow deterministic unit testing without connecting.
    """
    engine_kwargs: dict = {
        "echo": settings.DEBUG,
        "pool_pre_ping": True,
    }

    if _is_sqlite_url(database_url):
        # Required for FastAPI concurrency and the reminder sweep thread.
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        return engine_kwargs

    engine_kwargs["pool_size"] = settings.DB_POOL_SIZE
    engine_kwargs["max_overflow"] = settings.DB_MAX_OVERFLOW
    engine_kwargs["pool_timeout"] = settings.DB_POOL_TIMEOUT_SEC
    return engine_kwargs


def build_engine(database_url: str) -> Engine:
    return create_engine(database_url, **get_engine_kwargs(database_url))


# Create engine (module-level singleton)
engine = build_engine(DATABASE_URL)


@event.listens_for(Engine, "connect")
def set_sqlite_pragmas(dbapi_conn, connection_record):
    """Enable WAL on SQLite so reminder sweeps can read during request writes."""
    if _is_sqlite_url(DATABASE_URL):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for declarative models
Base = declarative_base()


def get_db() -> Session:
    """Get database session (dependency for FastAPI)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize database schema."""
    # Import models so they register with Base.metadata
    from taskengine.database import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
