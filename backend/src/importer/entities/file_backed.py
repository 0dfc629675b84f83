"""
User Data Importer - File-Backed Records
Import, export and raw-data-archive records whose payload files are
restored from the archive's files/ directory.
"""

from typing import Optional

from importer.entities.base import EntityImporter
from importer.file_restorer import FileRestorer
from models.orm_export import Export
from models.orm_import import Import, IMPORT_SOURCES
from models.orm_raw_data_archive import RawDataArchive
from utils.timezone import to_iso8601, to_key_timestamp

FILE_FIELDS = frozenset({'file_name', 'original_filename', 'file_size', 'content_type', 'file_error'})


class FileBackedImporter(EntityImporter):
    """Entity importer that restores an attached file after each create."""
    file_label = 'File'

    def __init__(self, session, user_id, reporter=None, file_restorer: Optional[FileRestorer] = None):
        super().__init__(session, user_id, reporter)
        self.file_restorer = file_restorer

    def should_restore(self, record) -> bool:
        return bool(record.get('file_name'))

    def after_commit(self, instance, record):
        if self.file_restorer is None or not self.should_restore(record):
            return
        if self.file_restorer.restore(instance, record, self.file_label):
            self.files_restored += 1


def _source_name(source):
    """Archived sources may be names or integer enum values."""
    if isinstance(source, int) and not isinstance(source, bool) and 0 <= source < len(IMPORT_SOURCES):
        return IMPORT_SOURCES[source]
    return source


class ImportRecordImporter(FileBackedImporter):
    """
    Imports match on (name, source, created_at). The original created_at is
    kept so the key survives a round trip, and records are stored as
    already processed so no background re-import is triggered.
    """
    kind = 'imports'
    entity_type = 'import'
    file_label = 'Import'
    model = Import
    required_fields = ('name',)
    excluded_fields = FILE_FIELDS | {'id', 'user_id', 'updated_at'}

    def natural_key(self, record):
        return (record['name'], _source_name(record.get('source')), to_key_timestamp(record.get('created_at')))

    def key_for_existing(self, import_record):
        return (import_record.name, import_record.source, to_iso8601(import_record.created_at))

    def prepare_attributes(self, record):
        attributes = super().prepare_attributes(record)
        if record.get('source') is not None:
            attributes['source'] = _source_name(record['source'])
        if not attributes.get('status'):
            attributes['status'] = 'completed'
        return attributes


class ExportRecordImporter(FileBackedImporter):
    """Exports match on (name, created_at); failed exports get no file."""
    kind = 'exports'
    entity_type = 'export'
    file_label = 'Export'
    model = Export
    required_fields = ('name',)
    excluded_fields = FILE_FIELDS | {'id', 'user_id', 'updated_at'}

    def natural_key(self, record):
        return (record['name'], to_key_timestamp(record.get('created_at')))

    def key_for_existing(self, export):
        return (export.name, to_iso8601(export.created_at))

    def should_restore(self, record) -> bool:
        return bool(record.get('file_name')) and not record.get('file_error')


class RawDataArchiveImporter(FileBackedImporter):
    """Raw data archives match on (year, month, chunk_number)."""
    kind = 'raw_data_archives'
    entity_type = 'raw_data_archive'
    file_label = 'Raw data archive'
    model = RawDataArchive
    required_fields = ('year', 'month')
    excluded_fields = FILE_FIELDS | {'id', 'user_id', 'created_at', 'updated_at'}
    field_renames = {'metadata': 'archive_metadata'}

    def natural_key(self, record):
        chunk_number = record.get('chunk_number')
        return (int(record['year']), int(record['month']), int(chunk_number) if chunk_number is not None else 1)

    def key_for_existing(self, archive):
        return (archive.year, archive.month, archive.chunk_number)
