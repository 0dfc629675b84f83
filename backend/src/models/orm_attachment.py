"""
SQLAlchemy ORM Model: Attachment
Binary payload metadata linked polymorphically to an owning record.
"""

from sqlalchemy import String, Integer, BigInteger, DateTime, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from datetime import datetime
from typing import Optional


class Attachment(Base):
    __tablename__ = "attachments"
    __table_args__ = (
        Index('idx_attachments_record', 'record_type', 'record_id'),
        {'extend_existing': True}
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    record_type: Mapped[str] = mapped_column(String(50), nullable=False, comment="Owning table name")
    record_id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False, default='file')

    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    byte_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    checksum: Mapped[Optional[str]] = mapped_column(String(32), comment="md5 hex digest")
    storage_key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Attachment({self.record_type}#{self.record_id}, filename='{self.filename}')>"
