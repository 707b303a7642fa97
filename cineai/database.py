from sqlalchemy import create_engine, pool, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from datetime import datetime, timezone
from cineai.config import Settings
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp; all DateTime columns store UTC without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def create_db_engine(settings: Settings) -> Engine:
    """
    Create the shared, bounded connection pool.

    Every component acquires a session per query and releases it before any
    network call to an external provider, so pool_size bounds concurrent
    database work across all requests.
    """
    url = settings.database_url

    if url.startswith("sqlite"):
        # In-memory SQLite only exists on one connection
        in_memory = url in ("sqlite://", "sqlite:///:memory:")
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": settings.db_pool_timeout},
            poolclass=pool.StaticPool if in_memory else pool.QueuePool,
            echo=settings.db_echo,
        )
    else:
        connect_args = {}
        if url.startswith("postgresql"):
            connect_args["options"] = f"-c statement_timeout={settings.db_statement_timeout_ms}"
        engine = create_engine(
            url,
            poolclass=pool.QueuePool,
            pool_size=settings.db_pool_size,  # Connections kept open
            max_overflow=0,  # Hard bound: callers queue for a free connection
            pool_timeout=settings.db_pool_timeout,  # Seconds to wait for a connection
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=True,
            connect_args=connect_args,
            echo=settings.db_echo,
        )

    @event.listens_for(engine, "connect")
    def receive_connect(dbapi_conn, connection_record):
        """Log when a new connection is created"""
        logger.debug("Database connection established")

    @event.listens_for(engine, "checkout")
    def receive_checkout(dbapi_conn, connection_record, connection_proxy):
        """Log when a connection is checked out from the pool"""
        logger.debug(f"Connection checked out from pool: {engine.pool.status()}")

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """
    Session factory handed to the stores.

    Usage:
        db = session_factory()
        try:
            # Use db here
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
    """
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
