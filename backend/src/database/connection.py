"""
Location History Import - Database Connection Management
Provides SQLAlchemy connection pooling and ORM session management.

MySQL (PyMySQL) is the production backend. DATABASE_URL overrides the
discrete DB_* settings so workers and tests can run against SQLite or
PostgreSQL with the same code.
"""

from contextlib import contextmanager
from sqlalchemy import create_engine, event, text
from sqlalchemy.pool import QueuePool
from sqlalchemy.engine import Engine, Connection, URL, make_url
from sqlalchemy.orm import Session
from typing import Generator, Optional, Union

from utils.config import (
    DATABASE_URL, DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD,
    DB_POOL_SIZE, DB_POOL_MAX_OVERFLOW, DB_POOL_RECYCLE, DB_POOL_PRE_PING,
    config
)
from utils.logger import logger, log_database_error


def enable_sqlite_savepoints(engine: Engine) -> None:
    """
    Let pysqlite honour SAVEPOINT/ROLLBACK TO.

    The driver emits its own BEGIN lazily and breaks nested transactions;
    turning that off and issuing BEGIN ourselves is the documented SQLAlchemy
    recipe. Per-record importers depend on savepoints.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(url: Union[str, URL], **kwargs) -> Engine:
    """
    Create an engine for any supported backend.

    Args:
        url: Database URL
        **kwargs: Extra create_engine() arguments

    Returns:
        SQLAlchemy Engine
    """
    url = make_url(url)
    if url.get_backend_name() == 'sqlite':
        engine = create_engine(url, **kwargs)
        enable_sqlite_savepoints(engine)
        return engine

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=DB_POOL_SIZE,  # 10 connections
        max_overflow=DB_POOL_MAX_OVERFLOW,  # +20 overflow
        pool_recycle=DB_POOL_RECYCLE,  # Recycle after 1 hour
        pool_pre_ping=DB_POOL_PRE_PING,  # Health check before use
        echo=False,
        hide_parameters=True,  # Keep record payloads out of error logs
        **kwargs
    )


class DatabaseConnection:
    """
    Manages database connections with connection pooling.

    Features:
    - Connection pooling (10 connections + 20 overflow)
    - Automatic connection recycling (every hour)
    - Health checks before connection use (pool_pre_ping)
    """

    def __init__(self, url: Optional[str] = None):
        self._url = url
        self._engine: Optional[Engine] = None

    def _connection_url(self) -> Union[str, URL]:
        if self._url:
            return self._url
        if DATABASE_URL:
            return DATABASE_URL
        # URL.create() keeps the password out of repr() and logs
        return URL.create(
            drivername="mysql+pymysql",
            username=DB_USER,
            password=DB_PASSWORD,
            host=DB_HOST,
            port=DB_PORT,
            database=DB_NAME,
            query={
                "charset": "utf8mb4",
                "init_command": "SET time_zone='+00:00'",  # Force UTC for all connections
            },
        )

    def get_engine(self) -> Engine:
        """
        Get or create the SQLAlchemy engine.

        Returns:
            SQLAlchemy Engine instance

        Raises:
            DatabaseConnectionError: If the engine cannot be created
        """
        if self._engine is None:
            try:
                self._engine = build_engine(self._connection_url())

                logger.info("Database connection pool initialized", extra={
                    "backend": self._engine.dialect.name,
                    "database": self._engine.url.database,
                    "environment": config.environment
                })

            except Exception as e:
                log_database_error(e, "Failed to create database engine")
                raise DatabaseConnectionError(f"Failed to create database engine: {e}")

        return self._engine

    @contextmanager
    def get_connection(self) -> Generator[Connection, None, None]:
        """
        Context manager for Core connections; commits on success.

        Example:
            >>> with db.get_connection() as conn:
            ...     conn.execute(text("SELECT COUNT(*) FROM points"))
        """
        engine = self.get_engine()
        connection = engine.connect()
        try:
            yield connection
            connection.commit()
        except Exception as e:
            connection.rollback()
            log_database_error(e, "Transaction failed, rolled back")
            raise
        finally:
            connection.close()

    def test_connection(self) -> bool:
        """
        Test database connectivity.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            with self.get_connection() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection test successful")
            return True
        except Exception as e:
            logger.error("Database connection test failed", extra={
                "error": str(e)
            })
            return False

    def create_schema(self) -> None:
        """Create all tables known to the ORM (local setup and CLI)."""
        from models import Base
        Base.metadata.create_all(self.get_engine())
        logger.info("Database schema created")

    def close(self):
        """Close all connections in the pool."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database connection pool closed")


class DatabaseConnectionError(Exception):
    """Raised when database connection fails."""
    pass


# Global database connection instance
db = DatabaseConnection()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Context manager for ORM database sessions.

    Sessions are committed on success or rolled back on error.

    Yields:
        SQLAlchemy Session object

    Example:
        >>> with get_db_session() as session:
        ...     stats = UserDataImporter(session, user_id=1).call('/tmp/export.zip')
    """
    from models.base import create_session

    session = create_session()

    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        log_database_error(e, "ORM transaction failed, rolled back")
        raise
    finally:
        session.close()
