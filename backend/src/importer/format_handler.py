"""
User Data Importer - Format Handler Base
Shared phase runner and importer wiring for the V1 and V2 archive handlers.
"""

import logging
import os
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from importer.entities import ENTITY_IMPORTERS, PointImporter, SettingsImporter
from importer.entities.base import EntityImporter
from importer.entities.file_backed import FileBackedImporter
from importer.file_restorer import FileRestorer
from importer.issue_reporter import IssueReporter
from importer.statistics import ImportStatistics
from utils.config import IMPORT_BATCH_SIZE
from utils.file_storage import FileStorage
from utils.logger import log_phase_complete
from utils.memory_tracker import MemoryTracker

logger = logging.getLogger(__name__)


class FormatHandler:
    """
    Base class for archive format handlers.

    A handler reads one extracted archive and feeds its records to the
    per-entity importers in dependency order, accumulating counts into the
    shared ImportStatistics. Each phase ends with a commit, so a failure in
    a later phase leaves earlier phases in place.

    Subclasses implement ``process()`` and set ``expected_counts`` from the
    archive's declared counts when it has them.
    """

    format_name = ''

    def __init__(
        self,
        session: Session,
        user_id: int,
        import_directory: str,
        stats: ImportStatistics,
        reporter: Optional[IssueReporter] = None,
        file_storage: Optional[FileStorage] = None,
        memory_tracker: Optional[MemoryTracker] = None,
        batch_size: Optional[int] = None,
        on_phase: Optional[Callable[[str], None]] = None
    ):
        self.session = session
        self.user_id = user_id
        self.import_directory = import_directory
        self.stats = stats
        self.reporter = reporter
        self.memory_tracker = memory_tracker or MemoryTracker()
        self.batch_size = batch_size or IMPORT_BATCH_SIZE
        self.on_phase = on_phase
        self.files_directory = os.path.join(import_directory, 'files')
        self.file_restorer = FileRestorer(session, self.files_directory, file_storage, reporter)
        self.expected_counts: Optional[Dict[str, Any]] = None

    def process(self) -> None:
        raise NotImplementedError

    def run_phase(self, phase: str, fn: Callable, *args, **kwargs):
        """
        Run one import phase and commit it.

        Args:
            phase: Phase name (entity kind or "settings")
            fn: Callable doing the work

        Returns:
            Whatever fn returns
        """
        if self.on_phase:
            self.on_phase(phase)
            # Heartbeat must be visible to other workers while the phase runs
            self.session.commit()

        started = time.monotonic()
        created_before = self.stats.created(phase)
        result = fn(*args, **kwargs)
        self.session.commit()

        log_phase_complete(
            phase,
            self.stats.created(phase) - created_before,
            round(time.monotonic() - started, 3)
        )
        self.memory_tracker.checkpoint(phase)
        return result

    # --- importer wiring -------------------------------------------------

    def entity_importer(self, kind: str) -> EntityImporter:
        importer_class = ENTITY_IMPORTERS[kind]
        if issubclass(importer_class, FileBackedImporter):
            return importer_class(self.session, self.user_id, self.reporter, file_restorer=self.file_restorer)
        return importer_class(self.session, self.user_id, self.reporter)

    def import_record_batches(self, kind: str, batches: Iterable[List[Any]]) -> int:
        """
        Import batches of one kind through a single importer instance.

        Returns:
            Number of records created
        """
        importer = self.entity_importer(kind)
        created = 0
        for batch in batches:
            created += importer.call(batch)
        self.stats.add_created(kind, created)
        self.stats.add_files_restored(importer.files_restored)
        return created

    def import_records(self, kind: str, records: Any) -> int:
        return self.import_record_batches(kind, [records])

    def import_settings(self, settings: Any) -> None:
        if SettingsImporter(self.session, self.user_id).call(settings):
            self.stats.settings_updated = True

    def new_point_importer(self, batch_size: Optional[int] = None) -> PointImporter:
        return PointImporter(
            self.session,
            self.user_id,
            batch_size=batch_size or self.batch_size,
            reporter=self.reporter
        )

    def finish_points(self, importer: PointImporter) -> int:
        created = importer.finalize()
        self.stats.add_created('points', created)
        self.stats.points_skipped += importer.skipped_count
        return created
