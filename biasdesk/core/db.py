"""
Database session management.

Provides explicit ORM session handling with SQLAlchemy.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Generator

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session

from biasdesk.core.config import Config
from biasdesk.core.models import Base

_engines: Dict[str, Engine] = {}


def get_engine(config: Config) -> Engine:
    """
    Create (or reuse) the SQLAlchemy engine for the configured database.

    Uses SQLite with WAL mode for better concurrency.
    """
    db_path = Path(config.database_path)
    cache_key = str(db_path.resolve())

    if cache_key in _engines:
        return _engines[cache_key]

    db_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )

    # Enable WAL mode for better concurrent access
    with engine.connect() as conn:
        conn.execute(text("PRAGMA journal_mode=WAL"))
        conn.commit()

    _engines[cache_key] = engine
    return engine


def init_db(config: Config) -> None:
    """
    Initialize database schema.

    Creates all tables if they don't exist.
    """
    engine = get_engine(config)
    Base.metadata.create_all(engine)


@contextmanager
def session_scope(config: Config) -> Generator[Session, None, None]:
    """
    One session per unit of work: commit on success, roll back on error.

    Usage:
        with session_scope(config) as session:
            session.merge(row)
    """
    session = Session(get_engine(config))
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def dispose_engines() -> None:
    """Close every cached engine (used by tests and short-lived scripts)."""
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()
