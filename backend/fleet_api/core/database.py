from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool, StaticPool
import logging

from fleet_api.core.config import settings
from fleet_api.core.errors import not_found

logger = logging.getLogger(__name__)

IS_SQLITE = settings.DATABASE_URL.startswith("sqlite")

if IS_SQLITE:
    # Single shared connection so in-memory databases survive across sessions
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
else:
    # Create engine with connection pooling
    engine = create_engine(
        settings.DATABASE_URL,
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,  # Verify connections before use
        echo=False,
    )


@event.listens_for(engine, "connect")
def connect(dbapi_connection, connection_record):
    connection_record.info["pid"] = id(dbapi_connection)
    if IS_SQLITE:
        # SQLite ignores ON DELETE rules unless asked
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
    logger.debug(f"New database connection established: {connection_record.info['pid']}")


@event.listens_for(engine, "checkout")
def checkout(dbapi_connection, connection_record, connection_proxy):
    logger.debug(f"Connection checked out: {connection_record.info.get('pid')}")


@event.listens_for(engine, "checkin")
def checkin(dbapi_connection, connection_record):
    logger.debug(f"Connection checked in: {connection_record.info.get('pid')}")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Database session dependency with error handling."""
    db = SessionLocal()
    try:
        yield db
    except OperationalError as e:
        logger.error(f"Database operational error: {e}")
        db.rollback()
        raise
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db():
    """Create any missing tables."""
    # Import models so they register on Base.metadata
    import fleet_api.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def check_database_health() -> dict:
    """Check database connectivity and return health status."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

            status = {"status": "healthy", "connected": True}
            if not IS_SQLITE:
                status["pool"] = {
                    "pool_size": engine.pool.size(),
                    "checked_in": engine.pool.checkedin(),
                    "checked_out": engine.pool.checkedout(),
                    "overflow": engine.pool.overflow(),
                }
            return status
    except OperationalError as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "connected": False,
            "error": str(e),
        }


def get_or_404(db, model, resource_id, resource: str = None):
    """Fetch ``model`` by primary key or raise a 404 problem."""
    instance = db.get(model, resource_id)
    if instance is None:
        raise not_found(resource or model.__name__, resource_id)
    return instance
