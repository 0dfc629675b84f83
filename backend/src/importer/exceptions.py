"""
User Data Importer - Exceptions
Run-level failures. Record-level problems never raise past their batch.
"""


class ImportDataError(Exception):
    """Base class for errors that abort an import run."""
    pass


class ArchiveReadError(ImportDataError):
    """Raised when the archive cannot be opened or extracted."""
    pass


class UnrecognizedArchiveError(ImportDataError):
    """Raised when an archive has neither manifest.json nor data.json."""
    pass


class ArchiveFormatError(ImportDataError):
    """Raised when a required archive file is missing or structurally invalid."""
    pass


class DocumentParseError(ArchiveFormatError):
    """Raised when the legacy data.json document is not valid JSON."""
    pass


class ImportInProgressError(ImportDataError):
    """Raised when another import for the same user is still running."""
    pass
