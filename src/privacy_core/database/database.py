"""Database connection and session management."""

import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a database engine.

    In-memory SQLite shares a single connection so every session sees the
    same database.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def create_session_factory(database_url: str, engine: Optional[Engine] = None) -> sessionmaker:
    """Create a session factory bound to a new or supplied engine."""
    engine = engine or create_db_engine(database_url)
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False
    )


def init_db(engine: Engine) -> None:
    """Initialize database tables."""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Error creating database tables: {e}")
        raise


@contextmanager
def get_db_context(session_factory: sessionmaker):
    """
    Context manager for database sessions.

    Usage:
        with get_db_context(session_factory) as db:
            # Use db session
    """
    db = session_factory()
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Database error: {e}")
        db.rollback()
        raise
    finally:
        db.close()
