"""
Repository: Import Issues
CRUD operations for the ImportIssue model.
"""

from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import select, func

from models.orm_import_issue import ImportIssue


class ImportIssueRepository:
    """Repository for ImportIssue CRUD operations."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        issue_type: str,
        entity_type: str,
        description: str,
        run_id: Optional[str] = None,
        user_id: Optional[int] = None,
        raw_data: Optional[Dict[str, Any]] = None
    ) -> ImportIssue:
        """
        Create a new issue entry.

        Args:
            issue_type: Type of issue (INVALID, WRITE_FAILED, ...)
            entity_type: Entity kind (point, visit, import, ...)
            description: Human-readable description
            run_id: Associated run ID (optional)
            user_id: Target user (optional)
            raw_data: Offending record for debugging (optional)

        Returns:
            Created ImportIssue instance
        """
        issue = ImportIssue(
            issue_type=issue_type,
            entity_type=entity_type,
            description=description,
            run_id=run_id,
            user_id=user_id,
            raw_data=raw_data
        )
        self.session.add(issue)
        self.session.flush()
        return issue

    def get_by_run(self, run_id: str, limit: int = 100) -> List[ImportIssue]:
        """Get issue entries for a run."""
        stmt = select(ImportIssue).where(
            ImportIssue.run_id == run_id
        ).order_by(ImportIssue.id.desc()).limit(limit)
        return list(self.session.execute(stmt).scalars().all())

    def count_by_type(self, run_id: str) -> Dict[str, int]:
        """
        Count issues by type for a run.

        Returns:
            Dict mapping issue_type to count
        """
        stmt = select(
            ImportIssue.issue_type,
            func.count(ImportIssue.id)
        ).where(
            ImportIssue.run_id == run_id
        ).group_by(ImportIssue.issue_type)

        results = self.session.execute(stmt).all()
        return {row[0]: row[1] for row in results}
