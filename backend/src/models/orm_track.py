"""
SQLAlchemy ORM Models: Track and TrackSegment
A continuous recorded movement and its per-transport-mode segments.
"""

from sqlalchemy import String, Float, Integer, ForeignKey, DateTime, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from models.base import Base
from datetime import datetime
from typing import List, Optional


class Track(Base):
    __tablename__ = "tracks"
    __table_args__ = {'extend_existing': True}

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    start_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    original_path: Mapped[Optional[str]] = mapped_column(Text, comment="WKT LINESTRING")

    distance: Mapped[Optional[float]] = mapped_column(Float)
    avg_speed: Mapped[Optional[float]] = mapped_column(Float)
    duration: Mapped[Optional[int]] = mapped_column(Integer, comment="Seconds")
    elevation_gain: Mapped[Optional[float]] = mapped_column(Float)
    elevation_loss: Mapped[Optional[float]] = mapped_column(Float)
    elevation_max: Mapped[Optional[float]] = mapped_column(Float)
    elevation_min: Mapped[Optional[float]] = mapped_column(Float)
    dominant_mode: Mapped[Optional[str]] = mapped_column(String(30))

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

    segments: Mapped[List["TrackSegment"]] = relationship(
        "TrackSegment",
        back_populates="track",
        order_by="TrackSegment.start_index",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Track(id={self.id}, start_at={self.start_at}, end_at={self.end_at})>"


class TrackSegment(Base):
    __tablename__ = "track_segments"
    __table_args__ = {'extend_existing': True}

    id: Mapped[int] = mapped_column(primary_key=True)
    track_id: Mapped[int] = mapped_column(Integer, ForeignKey("tracks.id"), nullable=False)

    transportation_mode: Mapped[Optional[str]] = mapped_column(String(30))
    start_index: Mapped[int] = mapped_column(Integer, nullable=False)
    end_index: Mapped[int] = mapped_column(Integer, nullable=False)
    distance: Mapped[Optional[float]] = mapped_column(Float)
    duration: Mapped[Optional[int]] = mapped_column(Integer)
    avg_speed: Mapped[Optional[float]] = mapped_column(Float)
    max_speed: Mapped[Optional[float]] = mapped_column(Float)
    confidence: Mapped[Optional[str]] = mapped_column(String(20))
    source: Mapped[Optional[str]] = mapped_column(String(30))

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now()
    )

    track: Mapped["Track"] = relationship("Track", back_populates="segments")

    def __repr__(self) -> str:
        return f"<TrackSegment(track_id={self.track_id}, {self.start_index}-{self.end_index}, mode='{self.transportation_mode}')>"
