"""
User Data Importer - Points
High-volume location fixes, written in bulk with storage-enforced dedup.
"""

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database.bulk import insert_ignore
from importer.attributes import build_attributes, is_blank, lonlat_wkt, normalize_wkt_point, timestamp_to_epoch
from importer.issue_reporter import IssueReporter
from importer.lookup_cache import ReferenceLookupCache
from models.orm_point import Point
from utils.config import IMPORT_BATCH_SIZE
from utils.timezone import utc_now

logger = logging.getLogger(__name__)

# Reference payloads and export bookkeeping never stored on the row
EXCLUDED_FIELDS = frozenset({
    'id', 'user_id', 'created_at', 'updated_at',
    'import_reference', 'country_info', 'visit_reference', 'country',
    'longitude', 'latitude', 'timestamp',
    # Ids from the exporting instance mean nothing here
    'import_id', 'country_id', 'visit_id', 'track_id',
})


def is_valid_point(record: Any) -> bool:
    """A point needs a timestamp and either a WKT lonlat or a longitude/latitude pair."""
    if not isinstance(record, dict):
        return False
    if is_blank(record.get('timestamp')):
        return False
    lonlat = record.get('lonlat')
    has_lonlat = isinstance(lonlat, str) and lonlat.startswith('POINT(')
    has_coordinates = not is_blank(record.get('longitude')) and not is_blank(record.get('latitude'))
    return has_lonlat or has_coordinates


class PointImporter:
    """
    Imports points for one user, either all at once (``import_all``) or
    one record at a time (``add`` then ``finalize``).

    Prepared rows are buffered and flushed every ``batch_size`` rows as one
    insert-ignore statement; the unique fix index drops duplicates of rows
    already stored, so the created count is what the database reports as
    inserted. A failed batch is rolled back to its savepoint, reported and
    skipped.
    """

    kind = 'points'
    entity_type = 'point'

    def __init__(
        self,
        session: Session,
        user_id: int,
        batch_size: Optional[int] = None,
        lookup_cache: Optional[ReferenceLookupCache] = None,
        reporter: Optional[IssueReporter] = None
    ):
        self.session = session
        self.user_id = user_id
        self.batch_size = batch_size or IMPORT_BATCH_SIZE
        self.reporter = reporter
        self._lookup_cache = lookup_cache
        self._batch: List[Dict[str, Any]] = []
        self._batch_keys: Set[Tuple[Any, Any, Any]] = set()
        self.created = 0
        self.skipped_count = 0
        self.duplicates = 0
        self.failed_batches = 0

    @property
    def lookup_cache(self) -> ReferenceLookupCache:
        """Reference maps, loaded on first use and kept for the whole run."""
        if self._lookup_cache is None:
            self._lookup_cache = ReferenceLookupCache.build(self.session, self.user_id)
        return self._lookup_cache

    def import_all(self, records: Any) -> int:
        """
        Import a whole list of point records.

        Returns:
            Number of points inserted
        """
        if not isinstance(records, (list, tuple)):
            return 0
        logger.info(f"Importing {len(records)} points for user {self.user_id}")
        for record in records:
            self.add(record)
        return self.finalize()

    def add(self, record: Any) -> None:
        """Validate, prepare and buffer one record, flushing a full batch."""
        if not isinstance(record, dict):
            return
        if not is_valid_point(record):
            self.skipped_count += 1
            return

        attributes = self.prepare_attributes(record)
        if attributes is None:
            self.skipped_count += 1
            return

        key = (attributes['lonlat'], attributes['timestamp'], attributes.get('device_id'))
        if key in self._batch_keys:
            self.duplicates += 1
            return
        self._batch_keys.add(key)
        self._batch.append(attributes)

        if len(self._batch) >= self.batch_size:
            self.flush()

    def finalize(self) -> int:
        """
        Flush the remaining buffered rows.

        Returns:
            Total number of points inserted by this importer
        """
        self.flush()
        if self.skipped_count:
            logger.warning(f"Skipped {self.skipped_count} points with invalid or missing required data")
        logger.info(f"Points import completed. Created: {self.created}", extra={
            "entity_type": self.entity_type,
            "records_created": self.created,
            "skipped": self.skipped_count,
            "duplicates": self.duplicates,
            "failed_batches": self.failed_batches
        })
        return self.created

    def prepare_attributes(self, record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Row mapping for one point, references resolved; None if it cannot be built.
        """
        try:
            attributes = build_attributes(Point, record, EXCLUDED_FIELDS)
            attributes['timestamp'] = timestamp_to_epoch(record['timestamp'])

            lonlat = record.get('lonlat')
            if isinstance(lonlat, str) and lonlat.startswith('POINT('):
                attributes['lonlat'] = normalize_wkt_point(lonlat)
            else:
                attributes['lonlat'] = lonlat_wkt(record['longitude'], record['latitude'])

            now = utc_now()
            attributes['user_id'] = self.user_id
            attributes['created_at'] = now
            attributes['updated_at'] = now

            cache = self.lookup_cache
            import_id = cache.resolve_import(record.get('import_reference'))
            if import_id is not None:
                attributes['import_id'] = import_id
            country_id = cache.resolve_country(record.get('country_info'))
            if country_id is not None:
                attributes['country_id'] = country_id
            visit_id = cache.resolve_visit(record.get('visit_reference'))
            if visit_id is not None:
                attributes['visit_id'] = visit_id
        except (ValueError, TypeError, OverflowError) as e:
            if self.reporter:
                self.reporter.report('PREPARE_FAILED', self.entity_type, "Failed to prepare point attributes", record, e)
            else:
                logger.warning(f"Failed to prepare point attributes: {e}")
            return None

        return attributes

    def flush(self) -> int:
        """Write the buffered batch. Returns the number of rows inserted."""
        if not self._batch:
            return 0

        batch = self._batch
        self._batch = []
        self._batch_keys = set()

        try:
            with self.session.begin_nested():
                inserted = insert_ignore(self.session, Point, batch)
        except SQLAlchemyError as e:
            self.failed_batches += 1
            logger.error(f"Failed to process point batch of {len(batch)}: {e}")
            if self.reporter:
                self.reporter.report(
                    'WRITE_FAILED',
                    self.entity_type,
                    f"Failed to write point batch of {len(batch)} starting at {batch[0]['lonlat']}",
                    None,
                    e
                )
            return 0

        self.created += inserted
        self.duplicates += len(batch) - inserted
        logger.debug(f"Point batch written: {inserted} of {len(batch)} inserted, {self.created} so far")
        return inserted

