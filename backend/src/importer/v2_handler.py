"""
User Data Importer - Sharded (V2) Archive Handler

V2 archive layout:
    manifest.json              format_version, counts, files
    files/                     attached import/export/raw-data payloads
    settings.jsonl             a single line
    <kind>.jsonl               areas, tags, taggings, imports, exports,
                               trips, notifications, places, raw_data_archives
    <kind>/YYYY/YYYY-MM.jsonl  points, visits, stats, tracks, digests,
                               listed under manifest["files"][kind]

Every .jsonl file holds one JSON record per line; blank lines are ignored.
"""

import json
import logging
import os
from typing import Any, Dict, Iterator, List, Optional

from importer.exceptions import ArchiveFormatError
from importer.format_handler import FormatHandler
from importer.statistics import ENTITY_KINDS

logger = logging.getLogger(__name__)

MANIFEST_FILE = 'manifest.json'
SETTINGS_FILE = 'settings.jsonl'

# Kinds split into monthly shard files
SHARDED_KINDS = frozenset({'points', 'visits', 'stats', 'tracks', 'digests'})


class V2Handler(FormatHandler):
    """Imports a sharded multi-file archive."""

    format_name = 'v2'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.manifest: Dict[str, Any] = {}

    def process(self) -> None:
        """
        Load the manifest and import every kind in dependency order.

        Raises:
            ArchiveFormatError: If manifest.json is missing or invalid
        """
        logger.info(f"Processing v2 format archive for user {self.user_id}")

        self.load_manifest()

        self.run_phase('settings', self.import_settings_file)
        for kind in ENTITY_KINDS:
            if kind == 'points':
                self.run_phase(kind, self.import_points)
            else:
                self.run_phase(kind, self.import_kind, kind)

        logger.info("V2 data import completed", extra={"user_id": self.user_id, **self.stats.to_dict()})

    def load_manifest(self) -> Dict[str, Any]:
        manifest_path = os.path.join(self.import_directory, MANIFEST_FILE)
        if not os.path.isfile(manifest_path):
            raise ArchiveFormatError(f"Manifest file not found in archive: {MANIFEST_FILE}")

        try:
            with open(manifest_path, 'r', encoding='utf-8') as fh:
                manifest = json.load(fh)
        except (ValueError, UnicodeDecodeError) as e:
            raise ArchiveFormatError(f"Invalid JSON format in manifest file: {e}") from e

        if not isinstance(manifest, dict):
            raise ArchiveFormatError("Invalid manifest: root must be an object")

        self.manifest = manifest
        counts = manifest.get('counts')
        self.expected_counts = counts if isinstance(counts, dict) else None

        logger.info(
            f"Loaded manifest: format_version={manifest.get('format_version')}, "
            f"app_version={manifest.get('app_version')}, "
            f"exported_at={manifest.get('exported_at')}"
        )
        return manifest

    # --- file access -----------------------------------------------------

    def _archive_path(self, relative_path: str) -> Optional[str]:
        """Absolute path inside the extracted archive, None if it escapes it."""
        root = os.path.realpath(self.import_directory)
        path = os.path.realpath(os.path.join(root, relative_path))
        if os.path.commonpath([root, path]) != root:
            logger.warning(f"Ignoring archive path outside the import directory: {relative_path}")
            return None
        return path

    def read_jsonl(self, path: str) -> Iterator[Any]:
        """
        Yield decoded records of a .jsonl file.

        A line that is not valid UTF-8 JSON is reported and skipped.
        """
        with open(path, 'rb') as fh:
            for line_number, raw_line in enumerate(fh, start=1):
                if not raw_line.strip():
                    continue
                try:
                    record = json.loads(raw_line.decode('utf-8'))
                except (ValueError, UnicodeDecodeError) as e:
                    name = os.path.relpath(path, self.import_directory)
                    message = f"Skipping malformed line {line_number} in {name}"
                    if self.reporter:
                        self.reporter.report('INVALID', 'jsonl_line', message, error=e)
                    else:
                        logger.warning(f"{message}: {e}")
                    continue
                yield record

    def read_jsonl_batches(self, path: str) -> Iterator[List[Any]]:
        batch = []
        for record in self.read_jsonl(path):
            batch.append(record)
            if len(batch) >= self.batch_size:
                yield batch
                batch = []
        if batch:
            yield batch

    def files_for(self, kind: str) -> List[str]:
        """
        Existing files holding records of one kind, in processing order.

        Sharded kinds use the manifest's sorted file list and fall back to
        a root ``<kind>.jsonl`` when the manifest lists none.
        """
        listed = []
        if kind in SHARDED_KINDS:
            files = self.manifest.get('files')
            if isinstance(files, dict) and isinstance(files.get(kind), list):
                listed = sorted(str(p) for p in files[kind])

        relative_paths = listed or [f"{kind}.jsonl"]
        paths = []
        for relative_path in relative_paths:
            path = self._archive_path(relative_path)
            if path is None:
                continue
            if not os.path.isfile(path):
                if listed:
                    logger.warning(f"Shard listed in manifest not found: {relative_path}")
                continue
            paths.append(path)
        return paths

    # --- phases ----------------------------------------------------------

    def import_settings_file(self) -> None:
        path = self._archive_path(SETTINGS_FILE)
        if path is None or not os.path.isfile(path):
            return
        # Only the first record is meaningful
        for settings in self.read_jsonl(path):
            self.import_settings(settings)
            break

    def _batches_for(self, kind: str) -> Iterator[List[Any]]:
        for path in self.files_for(kind):
            yield from self.read_jsonl_batches(path)
            logger.debug(f"Processed {kind} from {os.path.relpath(path, self.import_directory)}")

    def import_kind(self, kind: str) -> int:
        return self.import_record_batches(kind, self._batches_for(kind))

    def import_points(self) -> int:
        """Stream every points shard through one point importer."""
        paths = self.files_for('points')
        if not paths:
            return 0

        importer = self.new_point_importer()
        for path in paths:
            for record in self.read_jsonl(path):
                importer.add(record)
            logger.debug(f"Processed points from {os.path.relpath(path, self.import_directory)}")
        return self.finish_points(importer)
