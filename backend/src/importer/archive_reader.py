"""
User Data Importer - Archive Reader
Extracts an export archive into a private scratch directory and detects its format.
"""

import logging
import os
import shutil
import tempfile
import zipfile
from contextlib import contextmanager
from typing import Iterator, Optional

from importer.exceptions import ArchiveReadError, UnrecognizedArchiveError

logger = logging.getLogger(__name__)

FORMAT_V1 = 'v1'
FORMAT_V2 = 'v2'


def safe_extract(archive: zipfile.ZipFile, destination: str) -> int:
    """
    Extract every member of a zip archive below destination.

    Args:
        archive: Open ZipFile
        destination: Target directory

    Returns:
        Number of files extracted

    Raises:
        ArchiveReadError: If a member would be written outside destination
    """
    root = os.path.realpath(destination)
    extracted = 0

    for member in archive.infolist():
        target = os.path.realpath(os.path.join(root, member.filename))
        if os.path.commonpath([root, target]) != root:
            raise ArchiveReadError(f"Archive entry escapes extraction directory: {member.filename}")

        if member.is_dir():
            os.makedirs(target, exist_ok=True)
            continue

        os.makedirs(os.path.dirname(target), exist_ok=True)
        logger.debug(f"Extracting {member.filename} to {target}")
        with archive.open(member) as source, open(target, 'wb') as dest:
            shutil.copyfileobj(source, dest)
        extracted += 1

    return extracted


def detect_format(directory: str) -> str:
    """
    Tell V2 (manifest.json) from V1 (data.json) archives.

    Raises:
        UnrecognizedArchiveError: If neither file is present
    """
    if os.path.isfile(os.path.join(directory, 'manifest.json')):
        return FORMAT_V2
    if os.path.isfile(os.path.join(directory, 'data.json')):
        return FORMAT_V1
    raise UnrecognizedArchiveError(
        "unrecognized archive format: neither manifest.json nor data.json found"
    )


@contextmanager
def extracted_archive(archive_path: str, scratch_root: Optional[str] = None) -> Iterator[str]:
    """
    Extract an archive for the duration of a with-block.

    The scratch directory is removed on every exit path.

    Args:
        archive_path: Path to the .zip export
        scratch_root: Parent for the scratch directory (system temp dir if None)

    Yields:
        Path of the extracted archive root

    Raises:
        ArchiveReadError: If the archive is missing, unreadable or corrupt
    """
    if not os.path.isfile(archive_path):
        raise ArchiveReadError(f"Archive not found: {archive_path}")

    if scratch_root:
        os.makedirs(scratch_root, exist_ok=True)
    directory = tempfile.mkdtemp(prefix='import_', dir=scratch_root)

    try:
        logger.info(f"Extracting archive: {archive_path}")
        try:
            with zipfile.ZipFile(archive_path) as archive:
                count = safe_extract(archive, directory)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, EOFError) as e:
            raise ArchiveReadError(f"Failed to extract archive {archive_path}: {e}") from e
        logger.debug(f"Extracted {count} files into {directory}")

        yield directory
    finally:
        logger.info(f"Cleaning up temporary import directory: {directory}")
        try:
            shutil.rmtree(directory)
        except OSError as e:
            logger.warning(f"Failed to remove import directory {directory}: {e}")
