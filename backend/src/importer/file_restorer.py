"""
User Data Importer - File Restorer
Re-attaches archived binary payloads to newly created records.
"""

import logging
import os
from typing import Any, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from importer.issue_reporter import IssueReporter
from models.base import Base
from models.orm_attachment import Attachment
from utils.file_storage import FileStorage

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = 'application/octet-stream'


class FileRestorer:
    """
    Copies ``files/<file_name>`` from the extracted archive into storage
    and links it to the owning record through an Attachment row.

    Never raises: a missing file is a warning, a failed copy or insert is
    reported out-of-band, and the owning record stays created either way.
    """

    def __init__(
        self,
        session: Session,
        files_directory: str,
        storage: Optional[FileStorage] = None,
        reporter: Optional[IssueReporter] = None
    ):
        self.session = session
        self.files_directory = files_directory
        self.storage = storage or FileStorage()
        self.reporter = reporter

    def _source_path(self, file_name: str) -> Optional[str]:
        """Absolute path of an archived file, None if it escapes files/."""
        root = os.path.realpath(self.files_directory)
        path = os.path.realpath(os.path.join(root, file_name))
        if os.path.commonpath([root, path]) != root:
            return None
        return path

    def restore(self, owner: Base, file_fields: Mapping[str, Any], label: str = 'Import') -> bool:
        """
        Attach an archived file to a record.

        Args:
            owner: Newly created record (must have an id)
            file_fields: Record fields file_name, original_filename, content_type
            label: Entity label used in log messages

        Returns:
            True if the file was attached
        """
        file_name = file_fields.get('file_name')
        if not file_name:
            return False

        source_path = self._source_path(str(file_name))
        if source_path is None or not os.path.isfile(source_path):
            logger.warning(f"{label} file not found: {file_name}")
            if self.reporter:
                self.reporter.report(
                    'FILE_MISSING', owner.__tablename__, f"{label} file not found: {file_name}"
                )
            return False

        blob = None
        try:
            with self.session.begin_nested():
                blob = self.storage.store(source_path)
                self.session.add(Attachment(
                    record_type=owner.__tablename__,
                    record_id=owner.id,
                    name='file',
                    filename=file_fields.get('original_filename') or file_name,
                    content_type=file_fields.get('content_type') or DEFAULT_CONTENT_TYPE,
                    byte_size=blob.byte_size,
                    checksum=blob.checksum,
                    storage_key=blob.key
                ))
                self.session.flush()
        except (OSError, SQLAlchemyError) as e:
            if blob is not None:
                self.storage.delete(blob.key)
            logger.error(f"{label} file restoration failed for {file_name}: {e}")
            if self.reporter:
                self.reporter.report(
                    'FILE_RESTORE_FAILED', owner.__tablename__,
                    f"{label} file restoration failed for {file_name}", error=e
                )
            return False

        logger.debug(f"Restored file for {label.lower()}: {file_name}")
        return True
