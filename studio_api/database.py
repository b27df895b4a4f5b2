"""
Database Configuration and Session Management

SQLAlchemy setup with connection pooling. Tenant isolation is not enforced
here; every query in the services filters by tenant_id explicitly.
"""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from studio_api.config import get_settings
import logging

logger = logging.getLogger(__name__)

settings = get_settings()


def build_engine(database_url: str, debug: bool = False) -> Engine:
    """
    Create the SQLAlchemy engine for a URL.

    In-memory SQLite (used by the test suite) must share one connection,
    otherwise every session would see an empty database.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}, "echo": debug}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)

    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,  # handles connections dropped by the server
        echo=debug,
    )


engine = build_engine(settings.DATABASE_URL, debug=settings.DEBUG)

# expire_on_commit=False so handlers can read attributes after commit
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)

Base = declarative_base()


@event.listens_for(engine, "connect")
def configure_connection(dbapi_connection, connection_record):
    """Set connection-level configuration on new connections."""
    cursor = dbapi_connection.cursor()
    if settings.DATABASE_URL.startswith("postgresql"):
        cursor.execute("SET TIME ZONE 'UTC'")
    elif settings.DATABASE_URL.startswith("sqlite"):
        cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    logger.debug("New database connection established")


def get_db() -> Session:
    """
    Dependency function that provides a database session.

    The session is closed after the request completes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Create tables.

    Development and tests only; production schemas are managed by migrations.
    """
    # Import models so they register with Base.metadata
    import studio_api.models  # noqa: F401

    logger.warning("init_db() called - use migrations in production!")
    Base.metadata.create_all(bind=engine)
