"""
SQLAlchemy ORM Base Configuration
Provides declarative base and session management for ORM models.

IMPORTANT: Engine is imported from database.connection to ensure single source of truth.
"""

from sqlalchemy.orm import DeclarativeBase, sessionmaker


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


def _get_engine():
    """
    Get the SQLAlchemy engine from database.connection.

    Lazy import to avoid circular dependencies during module initialization.
    """
    from database.connection import db
    return db.get_engine()


# Session factory for workers and scripts. Bound on first use so importing
# the models never requires a reachable database.
SessionLocal = sessionmaker(
    expire_on_commit=False,  # Allow access to objects after commit
    autoflush=True,
    autocommit=False
)


def create_session():
    """
    Factory for creating sessions outside a request context (jobs, scripts).

    Usage:
        session = create_session()
        try:
            # Do work
            session.commit()
        except Exception as e:
            session.rollback()
            raise
        finally:
            session.close()

    Returns:
        SQLAlchemy Session instance
    """
    if SessionLocal.kw.get('bind') is None:
        SessionLocal.configure(bind=_get_engine())
    return SessionLocal()
