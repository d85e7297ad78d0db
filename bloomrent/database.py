import logging

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from bloomrent.core.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str, **overrides) -> Engine:
    """Create an engine with the pool/connect options each backend needs."""
    if database_url.startswith("sqlite"):
        options = {
            "connect_args": {"check_same_thread": False},  # SQLite multi-thread
            "echo": settings.SQL_ECHO,
        }
    else:
        options = {
            "connect_args": {
                "connect_timeout": 10,
                "options": "-c statement_timeout=30000",  # 30s query timeout
            },
            "echo": settings.SQL_ECHO,
            "pool_pre_ping": True,
            "pool_size": settings.DATABASE_POOL_SIZE,
            "max_overflow": settings.DATABASE_MAX_OVERFLOW,
            "pool_recycle": settings.DATABASE_POOL_RECYCLE,
            "pool_timeout": 30,
        }
    options.update(overrides)
    engine = create_engine(database_url, **options)

    if database_url.startswith("sqlite"):
        # FK cascades (unit -> property, tenant -> unit) are off by default in SQLite
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def test_connection() -> bool:
    """Test database connection - NON-BLOCKING."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        logger.info(f"[DB] Connected: {engine.url.render_as_string(hide_password=True)}")
        return True
    except Exception as e:
        logger.warning(f"[DB] Connection failed (continuing): {e}")
        return False


def init_db() -> bool:
    """Create tables for local development; production runs Alembic migrations."""
    try:
        from bloomrent.db.base import Base
        import bloomrent.models  # noqa: F401  registers every model on Base

        Base.metadata.create_all(bind=engine)
        logger.info("[DB] Tables initialized")
        return True
    except Exception as e:
        logger.warning(f"[DB] Init warning: {e}")
        return False


def close_db_connection() -> None:
    """Close database connections."""
    engine.dispose()
    logger.info("[DB] Connections closed")
