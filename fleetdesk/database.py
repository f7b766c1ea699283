# fleetdesk/database.py
"""
Database connection, session management, and table creation.
Uses SQLAlchemy with PostgreSQL. All models are auto-imported here
so create_tables() creates every table in one call.
"""

from sqlalchemy import create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from fleetdesk.config import settings

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,          # Auto-reconnect if DB connection drops
    pool_size=10,
    max_overflow=20,
    pool_timeout=30,
    echo=False,                  # Set True to log all SQL queries (debug only)
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    import fleetdesk.models  # noqa

    Base.metadata.create_all(bind=engine)


def commit_or_rollback(db, action: str):
    """
    Commit the unit of work. On failure the session is rolled back so no
    partial write survives; integrity violations surface as ConflictError.
    """
    from sqlalchemy.exc import IntegrityError, SQLAlchemyError
    from fleetdesk.exceptions import ConflictError
    from fleetdesk.utils.logger import get_logger

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        get_logger(__name__).warning(f"Integrity error while trying to {action}: {e.orig}")
        raise ConflictError(f"Failed to {action}: the record conflicts with existing data")
    except SQLAlchemyError:
        db.rollback()
        get_logger(__name__).error(f"Database error while trying to {action}", exc_info=True)
        raise
