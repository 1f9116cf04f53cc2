"""
Database Configuration and Session Management

SQLAlchemy engine, session factory and declarative base.

PostgreSQL gets a pooled engine. SQLite (local dev and tests) gets a
single shared connection when in-memory so every session sees the same
database.
"""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from kite_assets.config import get_settings
import logging

logger = logging.getLogger(__name__)

settings = get_settings()

IS_SQLITE = settings.DATABASE_URL.startswith("sqlite")


def _build_engine():
    if IS_SQLITE:
        return create_engine(
            settings.DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=settings.DEBUG,
        )

    return create_engine(
        settings.DATABASE_URL,
        poolclass=QueuePool,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,  # Verify connections before using (handles stale connections)
        echo=settings.DEBUG,  # Log SQL in debug mode
    )


engine = _build_engine()

# expire_on_commit=False lets handlers serialize rows after commit
# without another round trip.
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False
)

# Base class for all models
Base = declarative_base()


@event.listens_for(engine, "connect")
def configure_connection(dbapi_connection, connection_record):
    """Set connection-level configuration on new connections."""
    cursor = dbapi_connection.cursor()
    if IS_SQLITE:
        # SQLite ignores FK constraints (and ON DELETE rules) unless asked
        cursor.execute("PRAGMA foreign_keys=ON")
    elif settings.DATABASE_URL.startswith("postgresql"):
        cursor.execute("SET TIME ZONE 'UTC'")
    cursor.close()
    logger.debug("New database connection established")


def get_db() -> Session:
    """
    Dependency function that provides a database session.

    The session is closed after the request completes. Organization
    scoping is applied by the handlers, not here.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Create all tables.

    Development and test convenience; production schemas are managed
    out of band.
    """
    # Import models so they register on Base.metadata
    import kite_assets.models  # noqa: F401

    logger.warning("init_db() called - creating tables from model metadata")
    Base.metadata.create_all(bind=engine)
