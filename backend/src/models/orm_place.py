"""
SQLAlchemy ORM Model: Place
Named location shared by all users; visits link to it.
"""

from sqlalchemy import String, Double, DateTime, JSON, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from datetime import datetime
from typing import Optional, Dict, Any

PLACE_SOURCES = ('manual', 'photon', 'nominatim', 'geoapify', 'google')


class Place(Base):
    """
    Global (not user-scoped) place.

    Import matches places on exact (name, latitude, longitude) and never
    deletes them.
    """
    __tablename__ = "places"
    __table_args__ = (
        Index('idx_places_name_coordinates', 'name', 'latitude', 'longitude'),
        {'extend_existing': True}
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    latitude: Mapped[float] = mapped_column(Double, nullable=False)
    longitude: Mapped[float] = mapped_column(Double, nullable=False)
    lonlat: Mapped[Optional[str]] = mapped_column(String(255), comment="WKT POINT(lon lat)")

    source: Mapped[str] = mapped_column(String(50), nullable=False, default='manual')
    city: Mapped[Optional[str]] = mapped_column(String(255))
    country: Mapped[Optional[str]] = mapped_column(String(255))
    geodata: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    reverse_geocoded_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

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
        return f"<Place(id={self.id}, name='{self.name}', lat={self.latitude}, lon={self.longitude})>"
