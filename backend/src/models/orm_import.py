"""
SQLAlchemy ORM Model: Import
A file a user once imported into their location history (GPX, Google
Takeout, OwnTracks...). Restored from archives so points keep their
provenance link.
"""

from sqlalchemy import String, Integer, ForeignKey, DateTime, Text, JSON, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from datetime import datetime
from typing import Optional, Dict, Any

# Position in this tuple is the integer value older archives carry in
# point import references instead of the source name.
IMPORT_SOURCES = (
    'google_semantic_history',
    'owntracks',
    'google_records',
    'google_phone_takeout',
    'gpx',
    'immich_api',
    'geojson',
    'photoprism_api',
    'user_data_archive',
    'kml',
)

IMPORT_STATUSES = ('created', 'processing', 'completed', 'failed')


class Import(Base):
    __tablename__ = "imports"
    __table_args__ = (
        Index('idx_imports_user_name_source', 'user_id', 'name', 'source'),
        {'extend_existing': True}
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    source: Mapped[Optional[str]] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default='created')

    processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    raw_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    doubles: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    raw_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    error_message: Mapped[Optional[str]] = mapped_column(Text)

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

    @staticmethod
    def source_value(source: Optional[str]) -> Optional[int]:
        """Integer form of a source name, None for unknown sources."""
        if source in IMPORT_SOURCES:
            return IMPORT_SOURCES.index(source)
        return None

    def __repr__(self) -> str:
        return f"<Import(id={self.id}, name='{self.name}', source='{self.source}')>"
