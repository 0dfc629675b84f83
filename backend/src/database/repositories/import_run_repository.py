"""
Repository: Import Runs
CRUD operations for the ImportRun model.
"""

from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import select, and_

from models.orm_import_run import ImportRun


class ImportRunRepository:
    """Repository for ImportRun CRUD operations."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, user_id: int, archive_path: str) -> ImportRun:
        """
        Create a new pending import run.

        Args:
            user_id: Target user
            archive_path: Path of the archive being imported

        Returns:
            Created ImportRun instance
        """
        run = ImportRun(
            run_id=ImportRun.generate_run_id(),
            user_id=user_id,
            archive_path=archive_path,
            status='PENDING'
        )
        self.session.add(run)
        self.session.flush()
        return run

    def get_by_run_id(self, run_id: str) -> Optional[ImportRun]:
        """Get run by public run ID."""
        stmt = select(ImportRun).where(ImportRun.run_id == run_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_active_for_user(self, user_id: int) -> List[ImportRun]:
        """Get in-progress runs for a user, newest first."""
        stmt = select(ImportRun).where(
            and_(
                ImportRun.user_id == user_id,
                ImportRun.status == 'IN_PROGRESS'
            )
        ).order_by(ImportRun.id.desc())
        return list(self.session.execute(stmt).scalars().all())

    def list_for_user(self, user_id: int, limit: int = 20) -> List[ImportRun]:
        """List a user's runs, newest first."""
        stmt = select(ImportRun).where(
            ImportRun.user_id == user_id
        ).order_by(ImportRun.id.desc()).limit(limit)
        return list(self.session.execute(stmt).scalars().all())

    def start_run(self, run: ImportRun) -> None:
        """Mark run as started."""
        run.start()
        self.session.flush()

    def enter_phase(self, run: ImportRun, phase: str) -> None:
        """Record the current phase."""
        run.enter_phase(phase)
        self.session.flush()

    def complete_run(self, run: ImportRun, statistics: Dict[str, Any]) -> None:
        """Mark run as completed successfully."""
        run.complete(statistics)
        self.session.flush()

    def fail_run(self, run: ImportRun, error_message: str) -> None:
        """Mark run as failed."""
        run.fail(error_message)
        self.session.flush()
