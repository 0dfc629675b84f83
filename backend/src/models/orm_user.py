"""
SQLAlchemy ORM Models: User and Country
Import target account and the global country reference table.
"""

from sqlalchemy import String, DateTime, JSON, func
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from datetime import datetime
from typing import Optional, Dict, Any


class User(Base):
    """Owner of every user-scoped record an archive restores."""
    __tablename__ = "users"
    __table_args__ = {'extend_existing': True}

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    # Free-form key/value document, shallow-merged by settings import
    settings: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

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
        return f"<User(id={self.id}, email='{self.email}')>"


class Country(Base):
    """Global country table used to resolve point country references."""
    __tablename__ = "countries"
    __table_args__ = {'extend_existing': True}

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    iso_a2: Mapped[Optional[str]] = mapped_column(String(2), comment="ISO 3166-1 alpha-2 code")
    iso_a3: Mapped[Optional[str]] = mapped_column(String(3), comment="ISO 3166-1 alpha-3 code")

    def __repr__(self) -> str:
        return f"<Country(id={self.id}, name='{self.name}', iso_a2='{self.iso_a2}')>"
