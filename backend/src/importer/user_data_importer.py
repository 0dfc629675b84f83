"""
User Data Importer - Format Coordinator
Entry point that turns an export archive into a user's dataset.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from importer.archive_reader import FORMAT_V2, detect_format, extracted_archive
from importer.exceptions import ImportDataError
from importer.issue_reporter import IssueReporter
from importer.statistics import ImportStatistics
from importer.v1_handler import V1Handler
from importer.v2_handler import V2Handler
from models.orm_user import User
from utils.config import IMPORT_SCRATCH_DIR
from utils.file_storage import FileStorage
from utils.memory_tracker import MemoryTracker, format_bytes

logger = logging.getLogger(__name__)


class UserDataImporter:
    """
    Imports one archive for one user.

    Usage:
        importer = UserDataImporter(session, user_id=42)
        stats = importer.call('/path/to/export.zip')
        print(stats.summary())

    Records are matched by natural key, so running the same archive twice
    creates nothing the second time. Fatal problems (unreadable archive,
    unknown format, malformed data.json or manifest) raise; problems with
    individual records are logged and reported, and the run continues.
    """

    def __init__(
        self,
        session: Session,
        user_id: int,
        batch_size: Optional[int] = None,
        file_storage: Optional[FileStorage] = None,
        scratch_root: Optional[str] = None,
        run_id: Optional[str] = None,
        on_phase: Optional[Callable[[str], None]] = None
    ):
        self.session = session
        self.user_id = user_id
        self.batch_size = batch_size
        self.file_storage = file_storage or FileStorage()
        self.scratch_root = scratch_root or IMPORT_SCRATCH_DIR
        self.run_id = run_id
        self.on_phase = on_phase
        self.stats = ImportStatistics()
        self.reporter = IssueReporter(session, user_id=user_id, run_id=run_id)
        self.memory_tracker = MemoryTracker()
        self.archive_format: Optional[str] = None

    def call(self, archive_path: str) -> ImportStatistics:
        """
        Run the import.

        Args:
            archive_path: Path to the export .zip

        Returns:
            ImportStatistics with created counts per kind

        Raises:
            ImportDataError: On any fatal archive or format problem
        """
        if self.session.get(User, self.user_id) is None:
            raise ImportDataError(f"User {self.user_id} not found")

        self.memory_tracker.checkpoint('start')

        with extracted_archive(archive_path, self.scratch_root) as directory:
            self.archive_format = detect_format(directory)
            logger.info(f"Detected {self.archive_format} archive format for user {self.user_id}")

            handler_class = V2Handler if self.archive_format == FORMAT_V2 else V1Handler
            handler = handler_class(
                self.session,
                self.user_id,
                directory,
                self.stats,
                reporter=self.reporter,
                file_storage=self.file_storage,
                memory_tracker=self.memory_tracker,
                batch_size=self.batch_size,
                on_phase=self.on_phase
            )
            handler.process()

        self.validate_import_completeness(handler.expected_counts)

        self.memory_tracker.checkpoint('finish')
        peak = self.memory_tracker.peak
        logger.info(f"Import peak memory: {format_bytes(peak.rss_bytes)} at {peak.label}")

        return self.stats

    def validate_import_completeness(self, expected_counts) -> bool:
        """
        Compare created counts with the counts the archive declares.

        Shortfalls are logged as warnings only: on a re-import most records
        already exist and are legitimately not created again.

        Returns:
            True if nothing fell short
        """
        if not expected_counts:
            return True

        logger.info("Validating import completeness...")
        discrepancies = self.stats.discrepancies(expected_counts)
        for kind, detail in discrepancies.items():
            logger.warning(
                f"Import discrepancy - {kind}: expected {detail['expected']}, got {detail['created']} "
                f"({detail['missing']} missing)"
            )

        if discrepancies:
            logger.warning(f"Import completed with discrepancies in: {', '.join(discrepancies)}")
            return False

        logger.info("Import validation successful - all entities imported correctly")
        return True
