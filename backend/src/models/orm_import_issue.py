"""
SQLAlchemy ORM Model: Import Issue
Out-of-band record of per-record problems met during an archive import.
"""

from sqlalchemy import Integer, String, DateTime, Enum, Index, Text, JSON, func
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from datetime import datetime
from typing import Optional, Dict, Any
import enum


class ImportIssueType(enum.Enum):
    """Issue type enum for the import issue log."""
    INVALID = "INVALID"
    PREPARE_FAILED = "PREPARE_FAILED"
    WRITE_FAILED = "WRITE_FAILED"
    FILE_MISSING = "FILE_MISSING"
    FILE_RESTORE_FAILED = "FILE_RESTORE_FAILED"


class ImportIssue(Base):
    """
    Per-record problem that did not abort the run.

    Skipped records never fail an import; this table is where they surface
    for support and debugging.
    """
    __tablename__ = "import_issues"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Run association (NULL when an importer is used outside a tracked run)
    run_id: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        index=True,
        comment="Associated ImportRun.run_id"
    )
    user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    issue_type: Mapped[str] = mapped_column(
        Enum('INVALID', 'PREPARE_FAILED', 'WRITE_FAILED', 'FILE_MISSING', 'FILE_RESTORE_FAILED',
             name='import_issue_type_enum'),
        nullable=False,
        comment="Type of issue"
    )
    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Entity kind: point, visit, import, ..."
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Human-readable description of the issue"
    )
    raw_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        comment="Original record that caused the issue"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now()
    )

    __table_args__ = (
        Index('idx_import_issues_type', 'issue_type'),
        {'extend_existing': True}
    )

    def __repr__(self) -> str:
        return f"<ImportIssue(run_id='{self.run_id}', type='{self.issue_type}', entity='{self.entity_type}')>"
