"""
SQLAlchemy ORM Models: Stat and Digest
Monthly per-user statistics and periodic (monthly/yearly) digests.
"""

from sqlalchemy import String, Float, Integer, ForeignKey, DateTime, JSON, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from datetime import datetime
from typing import Optional, Dict, Any

DIGEST_PERIOD_TYPES = ('monthly', 'yearly')


class Stat(Base):
    """Monthly distance/toponym summary. One row per (user, year, month)."""
    __tablename__ = "stats"
    __table_args__ = (
        UniqueConstraint('user_id', 'year', 'month', name='uq_stats_user_period'),
        {'extend_existing': True}
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    distance: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    daily_distance: Mapped[Optional[Any]] = mapped_column(JSON)
    toponyms: Mapped[Optional[Any]] = mapped_column(JSON)
    h3_hex_ids: Mapped[Optional[Any]] = mapped_column(JSON)
    sharing_settings: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    sharing_uuid: Mapped[Optional[str]] = mapped_column(String(36), unique=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Stat(user_id={self.user_id}, {self.year}-{self.month:02d}, distance={self.distance})>"


class Digest(Base):
    """Periodic summary e-mailed to the user; month is NULL for yearly digests."""
    __tablename__ = "digests"
    __table_args__ = {'extend_existing': True}

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[Optional[int]] = mapped_column(Integer)
    period_type: Mapped[str] = mapped_column(String(20), nullable=False, default='yearly')

    distance: Mapped[Optional[float]] = mapped_column(Float)
    toponyms: Mapped[Optional[Any]] = mapped_column(JSON)
    monthly_distances: Mapped[Optional[Any]] = mapped_column(JSON)
    time_spent_by_location: Mapped[Optional[Any]] = mapped_column(JSON)
    first_time_visits: Mapped[Optional[Any]] = mapped_column(JSON)
    year_over_year: Mapped[Optional[Any]] = mapped_column(JSON)
    all_time_stats: Mapped[Optional[Any]] = mapped_column(JSON)
    sharing_settings: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    sharing_uuid: Mapped[Optional[str]] = mapped_column(String(36))
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Digest(user_id={self.user_id}, {self.period_type} {self.year}/{self.month})>"
