"""
User Data Importer - Out-of-band Issue Reporter
Records skipped or failed records without interrupting the import.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from database.repositories.import_issue_repository import ImportIssueRepository

logger = logging.getLogger(__name__)

# Large records are truncated before being stored for debugging
MAX_RAW_DATA_KEYS = 50


class IssueReporter:
    """
    Logs a per-record problem and stores it as an ImportIssue row.

    Reporting is best effort: a failure to store the issue is logged and
    swallowed so the record loop keeps going.
    """

    def __init__(self, session: Session, user_id: Optional[int] = None, run_id: Optional[str] = None):
        self.session = session
        self.user_id = user_id
        self.run_id = run_id
        self.repository = ImportIssueRepository(session)
        self._counts: Dict[str, int] = {}

    @property
    def counts(self) -> Dict[str, int]:
        """Issues reported so far by type."""
        return self._counts.copy()

    def report(
        self,
        issue_type: str,
        entity_type: str,
        description: str,
        record: Optional[Mapping[str, Any]] = None,
        error: Optional[BaseException] = None
    ) -> None:
        """
        Report one issue.

        Args:
            issue_type: INVALID, PREPARE_FAILED, WRITE_FAILED, FILE_MISSING, FILE_RESTORE_FAILED
            entity_type: Entity kind the record belongs to
            description: Human-readable description
            record: Offending archive record (optional)
            error: Exception that caused the issue (optional)
        """
        self._counts[issue_type] = self._counts.get(issue_type, 0) + 1
        if error is not None:
            description = f"{description}: {type(error).__name__}: {error}"

        logger.warning(description, extra={
            "event_type": "import_issue",
            "issue_type": issue_type,
            "entity_type": entity_type,
            "run_id": self.run_id,
            "user_id": self.user_id,
        })

        try:
            with self.session.begin_nested():
                self.repository.create(
                    issue_type=issue_type,
                    entity_type=entity_type,
                    description=description,
                    run_id=self.run_id,
                    user_id=self.user_id,
                    raw_data=self._raw_data(record)
                )
        except Exception as e:
            logger.warning(f"Failed to store import issue: {e}")

    @staticmethod
    def _raw_data(record: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
        if not isinstance(record, Mapping):
            return None
        items = list(record.items())[:MAX_RAW_DATA_KEYS]
        return dict(items)
