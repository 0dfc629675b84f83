"""
Unit Tests: File Storage
Tests the local blob store used for restored attachments.
"""

import hashlib

from utils.file_storage import FileStorage


class TestFileStorage:

    def test_store_copies_file_and_reports_checksum(self, tmp_path):
        source = tmp_path / 'history.json'
        source.write_bytes(b'{"timelineObjects": []}')
        storage = FileStorage(root=str(tmp_path / 'storage'))

        blob = storage.store(str(source))

        assert blob.byte_size == len(b'{"timelineObjects": []}')
        assert blob.checksum == hashlib.md5(b'{"timelineObjects": []}').hexdigest()
        assert storage.exists(blob.key)
        with open(storage.path_for(blob.key), 'rb') as f:
            assert f.read() == b'{"timelineObjects": []}'

    def test_keys_are_sharded_and_unique(self):
        first = FileStorage.generate_key()
        second = FileStorage.generate_key()

        prefix_a, prefix_b, token = first.split('/')
        assert token.startswith(prefix_a + prefix_b)
        assert first != second

    def test_delete_and_clear(self, tmp_path):
        source = tmp_path / 'a.gpx'
        source.write_bytes(b'<gpx/>')
        storage = FileStorage(root=str(tmp_path / 'storage'))
        kept = storage.store(str(source))
        removed = storage.store(str(source))

        storage.delete(removed.key)
        storage.delete(removed.key)

        assert not storage.exists(removed.key)
        assert storage.exists(kept.key)

        storage.clear()
        assert not storage.exists(kept.key)
