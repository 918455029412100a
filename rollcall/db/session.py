"""Database session management."""
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from contextlib import contextmanager
from typing import Generator

from rollcall.core.config import settings
from rollcall.core.exceptions import StorageError
from rollcall.core.logging_config import get_logger

logger = get_logger(__name__)

DATABASE_URL = settings.get_database_url()


def build_engine(url: str):
    """Create an engine; pool sizing only applies to server databases."""
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False}, echo=False)
    return create_engine(
        url,
        pool_pre_ping=True,
        echo=False,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW
    )


engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def storage_guard(db: Session, operation: str):
    """
    Roll back and re-raise unexpected database failures as StorageError.

    Expected races (IntegrityError, StaleDataError) must be handled inside
    the guarded block; anything that escapes is treated as transient.
    """
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("storage_failure", operation=operation, error=str(e))
        raise StorageError("The database is temporarily unavailable. Please retry.") from e
