"""
SQLAlchemy ORM Model: RawDataArchive
Compressed monthly chunk of raw point payloads moved out of the points table.
"""

from sqlalchemy import String, Integer, ForeignKey, DateTime, JSON, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from datetime import datetime
from typing import Optional, Dict, Any


class RawDataArchive(Base):
    __tablename__ = "raw_data_archives"
    __table_args__ = (
        UniqueConstraint('user_id', 'year', 'month', 'chunk_number', name='uq_raw_archives_chunk'),
        {'extend_existing': True}
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    chunk_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    point_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    point_ids_checksum: Mapped[Optional[str]] = mapped_column(String(64))
    archived_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # "metadata" is reserved on declarative classes
    archive_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSON)

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

    @property
    def file_name(self) -> str:
        return f"raw_data_archive_{self.year}_{self.month:02d}_{self.chunk_number}.gz"

    def __repr__(self) -> str:
        return f"<RawDataArchive(user_id={self.user_id}, {self.year}-{self.month:02d} chunk {self.chunk_number})>"
