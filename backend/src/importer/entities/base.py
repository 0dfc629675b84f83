"""
User Data Importer - Per-Entity Importer Base
Match-or-skip-or-create loop shared by every record kind.
"""

import logging
from typing import Any, Dict, FrozenSet, Hashable, Iterable, Optional, Set, Tuple, Type

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from importer.attributes import BOOKKEEPING_FIELDS, build_attributes, missing_fields
from importer.issue_reporter import IssueReporter
from models.base import Base

logger = logging.getLogger(__name__)


class EntityImporter:
    """
    Imports one kind of record for one user.

    For each raw record:
    1. non-mapping values are ignored
    2. records missing required fields are skipped and reported
    3. the natural key is computed; a match with an existing record skips it
    4. otherwise bookkeeping fields are stripped, ownership attached and the
       record created inside a savepoint

    A failure on one record rolls back only that record's savepoint.

    Subclasses set ``kind``/``entity_type``/``model``/``required_fields`` and
    implement ``natural_key()`` and ``key_for_existing()``.
    """

    kind: str = ''
    entity_type: str = ''
    model: Type[Base] = None
    required_fields: Tuple[str, ...] = ()
    excluded_fields: FrozenSet[str] = BOOKKEEPING_FIELDS
    field_renames: Dict[str, str] = {}
    user_scoped: bool = True

    def __init__(self, session: Session, user_id: int, reporter: Optional[IssueReporter] = None):
        self.session = session
        self.user_id = user_id
        self.reporter = reporter
        self.files_restored = 0
        self._existing_keys: Optional[Set[Hashable]] = None
        self._stats = {
            'created': 0,
            'existing': 0,
            'invalid': 0,
            'failed': 0,
        }

    @property
    def stats(self) -> Dict[str, int]:
        """Get per-record outcome counters."""
        return self._stats.copy()

    # --- hooks -----------------------------------------------------------

    def natural_key(self, record: Dict[str, Any]) -> Optional[Hashable]:
        """Key identifying the record; None means an unresolvable reference."""
        raise NotImplementedError

    def key_for_existing(self, instance: Base) -> Hashable:
        """Natural key of a stored record, same shape as natural_key()."""
        raise NotImplementedError

    def prepare_attributes(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Constructor arguments for a new record."""
        attributes = build_attributes(self.model, record, self.excluded_fields, self.field_renames)
        if self.user_scoped:
            attributes['user_id'] = self.user_id
        return attributes

    def after_create(self, instance: Base, record: Dict[str, Any]) -> None:
        """Runs inside the record's savepoint after the row is flushed."""

    def after_commit(self, instance: Base, record: Dict[str, Any]) -> None:
        """Runs after the record's savepoint is released (file restores)."""

    def existing_query(self):
        stmt = select(self.model)
        if self.user_scoped:
            stmt = stmt.where(self.model.user_id == self.user_id)
        return stmt

    # --- existence -------------------------------------------------------

    def load_existing_keys(self) -> Set[Hashable]:
        keys = set()
        for instance in self.session.execute(self.existing_query()).scalars():
            keys.update(self._as_key_set(self.key_for_existing(instance)))
        return keys

    @staticmethod
    def _as_key_set(key) -> Iterable[Hashable]:
        return key if isinstance(key, (set, frozenset)) else (key,)

    def exists(self, key: Hashable) -> bool:
        if self._existing_keys is None:
            self._existing_keys = self.load_existing_keys()
        # A frozenset key lists alternative keys; any of them matching counts
        return any(k in self._existing_keys for k in self._as_key_set(key))

    def remember(self, key: Hashable) -> None:
        if self._existing_keys is None:
            self._existing_keys = self.load_existing_keys()
        self._existing_keys.update(self._as_key_set(key))

    # --- main loop -------------------------------------------------------

    def call(self, records: Any) -> int:
        """
        Import a sequence of raw records.

        Args:
            records: List of archive records; anything else imports nothing

        Returns:
            Number of records created
        """
        if not isinstance(records, (list, tuple)):
            return 0

        logger.info(f"Importing {len(records)} {self.kind} for user {self.user_id}")
        created = 0

        for record in records:
            if not isinstance(record, dict):
                continue
            if self.import_record(record) is not None:
                created += 1

        logger.info(f"{self.kind.capitalize()} import completed. Created: {created}", extra={
            "entity_type": self.entity_type,
            **{f"{outcome}_count": count for outcome, count in self._stats.items()}
        })
        return created

    def import_record(self, record: Dict[str, Any]) -> Optional[Base]:
        """
        Import one record.

        Returns:
            The created instance, or None if skipped or failed
        """
        missing = missing_fields(record, self.required_fields)
        if missing:
            self._skip_invalid(record, f"Skipping {self.entity_type} with missing required data: {', '.join(missing)}")
            return None

        try:
            key = self.natural_key(record)
        except (ValueError, TypeError, OverflowError) as e:
            self._skip_invalid(record, f"Skipping {self.entity_type} with invalid data", e)
            return None

        if key is None:
            self._skip_invalid(record, f"Skipping {self.entity_type} with unresolved references")
            return None

        if self.exists(key):
            self._stats['existing'] += 1
            logger.debug(f"{self.entity_type.capitalize()} already exists: {key}")
            return None

        instance = self._create(record)
        if instance is None:
            return None

        self.remember(key)
        self._stats['created'] += 1
        self.after_commit(instance, record)
        return instance

    def _create(self, record: Dict[str, Any]) -> Optional[Base]:
        try:
            with self.session.begin_nested():
                instance = self.model(**self.prepare_attributes(record))
                self.session.add(instance)
                self.session.flush()
                self.after_create(instance, record)
        except (ValueError, TypeError, OverflowError) as e:
            self._skip_invalid(record, f"Failed to prepare {self.entity_type}", e)
            return None
        except SQLAlchemyError as e:
            self._stats['failed'] += 1
            logger.error(f"Failed to create {self.entity_type}: {e}")
            if self.reporter:
                self.reporter.report('WRITE_FAILED', self.entity_type, f"Failed to create {self.entity_type}", record, e)
            return None
        return instance

    def _skip_invalid(self, record: Dict[str, Any], message: str, error: Optional[BaseException] = None) -> None:
        self._stats['invalid'] += 1
        if self.reporter:
            self.reporter.report('INVALID', self.entity_type, message, record, error)
        else:
            logger.warning(message if error is None else f"{message}: {error}")
