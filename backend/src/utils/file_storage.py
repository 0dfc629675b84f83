"""
Location History Import - Attachment Storage
Local filesystem blob store for files re-attached to imported records.
"""

import hashlib
import os
import secrets
import shutil
from dataclasses import dataclass
from typing import Optional

from .config import FILE_STORAGE_ROOT


@dataclass
class StoredBlob:
    """Metadata of a payload written to storage."""
    key: str
    byte_size: int
    checksum: str


class FileStorage:
    """
    Stores blobs under a root directory using random two-level sharded keys
    (``ab/cd/abcdef...``), the same layout most object stores use locally.
    """

    def __init__(self, root: Optional[str] = None):
        self.root = root or FILE_STORAGE_ROOT

    @staticmethod
    def generate_key() -> str:
        token = secrets.token_hex(14)
        return f"{token[:2]}/{token[2:4]}/{token}"

    def path_for(self, key: str) -> str:
        return os.path.join(self.root, *key.split('/'))

    def store(self, source_path: str) -> StoredBlob:
        """
        Copy a file into storage.

        Args:
            source_path: Path of the file to store

        Returns:
            StoredBlob with the storage key, size and md5 checksum

        Raises:
            OSError: If the source cannot be read or the target written
        """
        key = self.generate_key()
        target = self.path_for(key)
        os.makedirs(os.path.dirname(target), exist_ok=True)

        digest = hashlib.md5()
        with open(source_path, 'rb') as src, open(target, 'wb') as dst:
            for chunk in iter(lambda: src.read(1024 * 1024), b''):
                digest.update(chunk)
                dst.write(chunk)

        return StoredBlob(
            key=key,
            byte_size=os.path.getsize(target),
            checksum=digest.hexdigest(),
        )

    def exists(self, key: str) -> bool:
        return os.path.exists(self.path_for(key))

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        if os.path.exists(path):
            os.remove(path)

    def clear(self) -> None:
        """Remove every stored blob (used by tests and local resets)."""
        if os.path.isdir(self.root):
            shutil.rmtree(self.root)
