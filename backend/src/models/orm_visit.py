"""
SQLAlchemy ORM Model: Visit
A user's stay at a place or inside an area between two instants.
"""

from sqlalchemy import String, Integer, ForeignKey, DateTime, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from models.base import Base
from datetime import datetime
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from models.orm_place import Place
    from models.orm_area import Area

VISIT_STATUSES = ('suggested', 'confirmed', 'declined')


class Visit(Base):
    __tablename__ = "visits"
    __table_args__ = (
        Index('idx_visits_user_period', 'user_id', 'started_at', 'ended_at'),
        {'extend_existing': True}
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    place_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("places.id"))
    area_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("areas.id"))

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    ended_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    duration: Mapped[Optional[int]] = mapped_column(Integer, comment="Minutes")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default='suggested')

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

    place: Mapped[Optional["Place"]] = relationship("Place")
    area: Mapped[Optional["Area"]] = relationship("Area")

    def __repr__(self) -> str:
        return f"<Visit(id={self.id}, name='{self.name}', started_at={self.started_at})>"
