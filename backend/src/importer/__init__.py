"""
Location History - User Data Importer
Restores a user's dataset from a V1 (data.json) or V2 (manifest.json) export archive.
"""

from importer.exceptions import (
    ImportDataError,
    ArchiveReadError,
    UnrecognizedArchiveError,
    ArchiveFormatError,
    DocumentParseError,
    ImportInProgressError
)
from importer.statistics import ImportStatistics, ENTITY_KINDS
from importer.lookup_cache import ReferenceLookupCache
from importer.user_data_importer import UserDataImporter
from importer.import_job import run_user_data_import, ImportJobResult

__all__ = [
    # Exceptions
    "ImportDataError",
    "ArchiveReadError",
    "UnrecognizedArchiveError",
    "ArchiveFormatError",
    "DocumentParseError",
    "ImportInProgressError",
    # Results
    "ImportStatistics",
    "ENTITY_KINDS",
    "ReferenceLookupCache",
    # Entry points
    "UserDataImporter",
    "run_user_data_import",
    "ImportJobResult",
]
