"""
Engine, session factory and transaction scope for the training store.

Services and repositories only flush. Whoever opens the session owns the
transaction: `get_db` (request dependency) and `session_scope` (scripts)
commit once at the end and roll back on any exception, so a propagation
over many workouts lands entirely or not at all.
"""
from contextlib import contextmanager
from typing import Iterator
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from core.config import settings
from core.exceptions import DomainError
import logging

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url

if settings.is_sqlite:
    # In-memory SQLite lives on one connection; share it between sessions
    _pool_options = {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
else:
    _pool_options = {
        "poolclass": QueuePool,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
    }

engine = create_engine(DATABASE_URL, echo=settings.DEBUG, **_pool_options)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)

Base = declarative_base()


@event.listens_for(engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    if not settings.is_sqlite:
        return
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_db() -> Iterator[Session]:
    """One session, one transaction: commit after the caller, roll back on error."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        # Domain errors are expected outcomes; only storage failures are logged
        if not isinstance(e, DomainError):
            logger.error(f"Training store transaction rolled back: {e}")
        raise
    finally:
        db.close()


session_scope = contextmanager(get_db)


def init_db() -> None:
    """Create every training table that does not exist yet."""
    import models  # noqa: F401  (registers mappers on Base)

    Base.metadata.create_all(bind=engine)
    logger.info("Training tables ready")
