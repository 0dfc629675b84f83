"""
SQLAlchemy ORM Models: Tag and Tagging
User labels and their polymorphic attachment to places.
"""

from sqlalchemy import String, Integer, ForeignKey, DateTime, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from models.base import Base
from datetime import datetime
from typing import Optional


class Tag(Base):
    __tablename__ = "tags"
    __table_args__ = (
        UniqueConstraint('user_id', 'name', name='uq_tags_user_name'),
        {'extend_existing': True}
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(50))
    color: Mapped[Optional[str]] = mapped_column(String(20))
    privacy_radius_meters: Mapped[Optional[int]] = mapped_column(Integer)

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
        return f"<Tag(id={self.id}, name='{self.name}', user_id={self.user_id})>"


class Tagging(Base):
    """Join row: tag -> taggable record (only places are taggable today)."""
    __tablename__ = "taggings"
    __table_args__ = (
        UniqueConstraint('tag_id', 'taggable_type', 'taggable_id', name='uq_taggings_target'),
        {'extend_existing': True}
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    tag_id: Mapped[int] = mapped_column(Integer, ForeignKey("tags.id"), nullable=False)
    taggable_type: Mapped[str] = mapped_column(String(50), nullable=False)
    taggable_id: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now()
    )

    tag: Mapped["Tag"] = relationship("Tag")

    def __repr__(self) -> str:
        return f"<Tagging(tag_id={self.tag_id}, {self.taggable_type}#{self.taggable_id})>"
