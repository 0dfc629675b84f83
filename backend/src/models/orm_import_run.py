"""
SQLAlchemy ORM Model: Import Run
Tracks one execution of a user data archive import.
"""

from sqlalchemy import Integer, String, ForeignKey, DateTime, Enum, Index, Text, JSON, func
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import enum
import secrets

from utils.timezone import utc_now


class ImportRunStatus(enum.Enum):
    """Run status enum matching database ENUM."""
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ImportRun(Base):
    """
    One archive import for one user.

    An IN_PROGRESS row doubles as the per-user exclusion lock: a new run is
    refused while another run for the same user is in progress and its
    heartbeat_at is younger than the lock timeout.
    """
    __tablename__ = "import_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Public-facing identifier (e.g., "run_abc123")
    run_id: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        comment="Public-facing run identifier"
    )

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    archive_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    archive_format: Mapped[Optional[str]] = mapped_column(
        String(10),
        nullable=True,
        comment="v1 (data.json) or v2 (manifest.json); NULL until detected"
    )

    # Progress tracking
    current_phase: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Entity kind currently being imported"
    )
    statistics: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        comment="Final ImportStatistics snapshot"
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        Enum('PENDING', 'IN_PROGRESS', 'COMPLETED', 'FAILED', name='import_run_status_enum'),
        nullable=False,
        default='PENDING',
        server_default='PENDING'
    )

    # Timestamps
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    heartbeat_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        comment="Last phase transition, used for stale lock detection"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now()
    )

    __table_args__ = (
        Index('idx_import_runs_user_status', 'user_id', 'status'),
        {'extend_existing': True}
    )

    @classmethod
    def generate_run_id(cls) -> str:
        """Generate a unique run ID in the format 'run_abc123def456'."""
        return f"run_{secrets.token_hex(8)}"

    def start(self) -> None:
        """Mark run as started."""
        self.status = 'IN_PROGRESS'
        self.started_at = utc_now()
        self.heartbeat_at = self.started_at

    def enter_phase(self, phase: str) -> None:
        """Record the phase being imported and refresh the heartbeat."""
        self.current_phase = phase
        self.heartbeat_at = utc_now()

    def complete(self, statistics: Dict[str, Any]) -> None:
        """Mark run as completed successfully."""
        self.status = 'COMPLETED'
        self.statistics = statistics
        self.current_phase = None
        self.completed_at = utc_now()

    def fail(self, error_message: str) -> None:
        """Mark run as failed."""
        self.status = 'FAILED'
        self.error_message = error_message
        self.completed_at = utc_now()

    def is_stale(self, timeout_minutes: int) -> bool:
        """True when an in-progress run stopped reporting for longer than the timeout."""
        last_seen = self.heartbeat_at or self.started_at or self.created_at
        if last_seen is None:
            return True
        return utc_now() - last_seen > timedelta(minutes=timeout_minutes)

    @property
    def is_active(self) -> bool:
        """Check if run is currently active."""
        return self.status in ('PENDING', 'IN_PROGRESS')

    def __repr__(self) -> str:
        return f"<ImportRun(run_id='{self.run_id}', user_id={self.user_id}, status='{self.status}')>"
