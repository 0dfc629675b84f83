"""
User Data Importer - Legacy (V1) Archive Handler

V1 archive layout:
    data.json    single JSON object, one key per section:
                 counts, settings, areas, places, tags, taggings, imports,
                 exports, trips, stats, digests, notifications, visits,
                 tracks, points, raw_data_archives
    files/       attached import/export payloads

data.json is parsed in one streaming pass. Small sections are imported as
soon as they are complete. Places are imported in batches while parsing.
Taggings are held in memory, and visits and points are staged to disk; all
three are imported after the parse, so they see every tag, place and import
record regardless of document order.
"""

import logging
import os
from typing import Any, Dict, List, Optional

from importer.exceptions import ArchiveFormatError, ArchiveReadError
from importer.format_handler import FormatHandler
from importer.json_stream import StreamingDocumentParser
from importer.section_buffer import RecordBatcher, SectionBuffer, close_all
from utils.config import IMPORT_STREAM_BATCH_SIZE

logger = logging.getLogger(__name__)

DATA_FILE = 'data.json'

# Non-streamed sections handed to the record importers as they complete
RECORD_SECTIONS = (
    'areas', 'tags', 'imports', 'exports', 'trips', 'stats',
    'digests', 'notifications', 'tracks', 'raw_data_archives',
)


class V1Handler(FormatHandler):
    """Imports a legacy single-document archive."""

    format_name = 'v1'

    def __init__(self, *args, stream_batch_size: int = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.stream_batch_size = stream_batch_size or IMPORT_STREAM_BATCH_SIZE
        self.places_batcher = RecordBatcher(self.stream_batch_size, self._import_places_batch)
        self.buffers: Dict[str, SectionBuffer] = {
            section: SectionBuffer(self.import_directory, section) for section in ('visits', 'points')
        }
        self.pending_taggings: Optional[List[Any]] = None

    def process(self) -> None:
        """
        Parse data.json and import every section.

        Raises:
            ArchiveFormatError: If data.json is missing
            DocumentParseError: If data.json is not valid JSON
            ArchiveReadError: If data.json cannot be read
        """
        logger.info(f"Processing v1 format archive for user {self.user_id}")

        json_path = os.path.join(self.import_directory, DATA_FILE)
        if not os.path.isfile(json_path):
            raise ArchiveFormatError(f"Data file not found in archive: {DATA_FILE}")

        try:
            with open(json_path, 'rb') as fh:
                StreamingDocumentParser(self).parse(fh)
        except OSError as e:
            raise ArchiveReadError(f"Failed to read JSON data: {e}") from e
        finally:
            close_all(self.buffers)

        self.places_batcher.flush()
        if self.pending_taggings is not None:
            self.run_phase('taggings', self.import_records, 'taggings', self.pending_taggings)
        self.run_phase('visits', self._import_staged_visits)
        self.run_phase('points', self._import_staged_points)

        logger.info("V1 data import completed", extra={"user_id": self.user_id, **self.stats.to_dict()})

    # --- SectionHandler --------------------------------------------------

    def handle_section(self, key: str, value: Any) -> None:
        if key == 'counts':
            if isinstance(value, dict):
                self.expected_counts = value
                logger.info(f"Expected entity counts from export: {value}")
        elif key == 'settings':
            if value:
                self.run_phase('settings', self.import_settings, value)
        elif key == 'taggings':
            # Resolved against tags and places, which may come later in the document
            self.pending_taggings = value
        elif key in RECORD_SECTIONS:
            self.run_phase(key, self.import_records, key, value)
        elif key in self.buffers or key == 'places':
            # Streamed section whose value was not an array
            logger.warning(f"Ignoring non-array {key} section")
        else:
            logger.debug(f"Unhandled section {key}")

    def handle_stream_value(self, section: str, value: Any) -> None:
        if section == 'places':
            if isinstance(value, dict):
                self.places_batcher.add(value)
        elif section in self.buffers:
            if value is not None:
                self.buffers[section].append(value)

    def finish_stream(self, section: str) -> None:
        if section == 'places':
            self.places_batcher.flush()
        elif section in self.buffers:
            self.buffers[section].close()

    # --- staged sections -------------------------------------------------

    def _import_places_batch(self, batch) -> None:
        logger.debug(f"Importing places batch of size {len(batch)}")
        self.run_phase('places', self.import_records, 'places', batch)

    def _import_staged_visits(self) -> None:
        buffer = self.buffers['visits']
        if not buffer.count:
            return
        logger.info(f"Importing {buffer.count} visits from streamed buffer")
        self.import_record_batches('visits', buffer.replay_batches(self.stream_batch_size))

    def _import_staged_points(self) -> None:
        buffer = self.buffers['points']
        if not buffer.count:
            return
        logger.info(f"Importing {buffer.count} points from streamed buffer")
        importer = self.new_point_importer(self.stream_batch_size)
        for record in buffer.replay():
            importer.add(record)
        self.finish_points(importer)
