"""
SQLAlchemy ORM Model: Point
A single recorded location fix. By far the highest-volume table.
"""

from sqlalchemy import (
    String, Float, Integer, BigInteger, ForeignKey, DateTime, JSON, Index, func
)
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from datetime import datetime
from typing import Optional, Dict, Any


class Point(Base):
    """
    Location fix stored as WKT ``POINT(lon lat)`` plus an epoch timestamp.

    Uniqueness on (lonlat, timestamp, user, device) is enforced by the
    ``idx_points_unique_fix`` index below; bulk writers rely on it to skip
    duplicates instead of checking first.
    """
    __tablename__ = "points"
    __table_args__ = {'extend_existing': True}

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    lonlat: Mapped[str] = mapped_column(String(255), nullable=False, comment="WKT POINT(lon lat)")
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, comment="Epoch seconds")

    # Optional references
    import_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("imports.id"))
    country_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("countries.id"))
    visit_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("visits.id"))
    track_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("tracks.id"))
    device_id: Mapped[Optional[int]] = mapped_column(Integer)

    # Tracker attributes
    altitude: Mapped[Optional[float]] = mapped_column(Float)
    velocity: Mapped[Optional[str]] = mapped_column(String(50))
    accuracy: Mapped[Optional[int]] = mapped_column(Integer)
    vertical_accuracy: Mapped[Optional[int]] = mapped_column(Integer)
    course: Mapped[Optional[float]] = mapped_column(Float)
    course_accuracy: Mapped[Optional[float]] = mapped_column(Float)
    battery: Mapped[Optional[int]] = mapped_column(Integer)
    battery_status: Mapped[Optional[str]] = mapped_column(String(20))
    tracker_id: Mapped[Optional[str]] = mapped_column(String(100))
    topic: Mapped[Optional[str]] = mapped_column(String(255))
    trigger: Mapped[Optional[str]] = mapped_column(String(20))
    connection: Mapped[Optional[str]] = mapped_column(String(20))
    mode: Mapped[Optional[int]] = mapped_column(Integer)
    city: Mapped[Optional[str]] = mapped_column(String(255))
    country_name: Mapped[Optional[str]] = mapped_column(String(255))
    reverse_geocoded_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Provenance
    geodata: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    raw_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)

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
        return f"<Point(id={self.id}, lonlat='{self.lonlat}', timestamp={self.timestamp})>"


# NULL device ids must collide with each other, hence the COALESCE
Index(
    'idx_points_unique_fix',
    Point.lonlat,
    Point.timestamp,
    Point.user_id,
    func.coalesce(Point.device_id, 0),
    unique=True
)
Index('idx_points_user_timestamp', Point.user_id, Point.timestamp)
