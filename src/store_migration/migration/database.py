"""
Database initialization and session management for migration state.
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine, pool
from sqlalchemy.orm import Session, sessionmaker

from store_migration.client.exceptions import ConfigurationError, StateError
from store_migration.migration.models import Base
from store_migration.utils.logging import get_logger

logger = get_logger(__name__)


def database_url_for(db_path: str) -> str:
    """Accept either a full database URL or a SQLite file path."""
    if "://" in db_path:
        return db_path
    return f"sqlite:///{db_path}"


def create_database_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine.

    SQLite gets no connection pool so the file can be shared between
    the CLI and tests without locking surprises.

    Raises:
        ConfigurationError: If the URL is empty or invalid
    """
    if not database_url:
        raise ConfigurationError("Database URL cannot be empty")

    try:
        if database_url.startswith("sqlite"):
            engine = create_engine(
                database_url,
                echo=echo,
                poolclass=pool.NullPool,
                connect_args={"check_same_thread": False},
            )
        else:
            engine = create_engine(database_url, echo=echo, pool_pre_ping=True)
    except Exception as e:
        logger.error("database_engine_failed", error=str(e))
        raise ConfigurationError(f"Failed to create database engine: {e}") from e

    return engine


def init_database(database_url: str, echo: bool = False) -> sessionmaker:
    """
    Create tables if needed and return a session factory.

    Safe to call repeatedly.

    Raises:
        StateError: If the schema cannot be created
    """
    engine = create_database_engine(database_url, echo=echo)
    try:
        Base.metadata.create_all(engine)
    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        raise StateError(f"Failed to initialize database: {e}") from e

    logger.debug("database_initialized", tables=len(Base.metadata.tables))
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Yield a session that commits on success and rolls back on error.

    Raises:
        StateError: If any database operation inside the block fails
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error("database_session_rolled_back", error=str(e))
        raise StateError(f"Database operation failed: {e}") from e
    finally:
        session.close()
