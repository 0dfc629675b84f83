"""
SQLAlchemy ORM Model: Area
User-defined circular region (home, office) used to classify visits.
"""

from sqlalchemy import String, Double, Integer, ForeignKey, DateTime, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from datetime import datetime

DEFAULT_AREA_RADIUS = 100


class Area(Base):
    __tablename__ = "areas"
    __table_args__ = (
        Index('idx_areas_user_name', 'user_id', 'name'),
        {'extend_existing': True}
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    latitude: Mapped[float] = mapped_column(Double, nullable=False)
    longitude: Mapped[float] = mapped_column(Double, nullable=False)
    radius: Mapped[float] = mapped_column(
        Double,
        nullable=False,
        default=DEFAULT_AREA_RADIUS,
        comment="Radius in meters"
    )

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
        return f"<Area(id={self.id}, name='{self.name}', user_id={self.user_id})>"
