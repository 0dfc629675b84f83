"""
Location History Import - pytest Configuration and Fixtures

Provides shared test fixtures for:
- Sample archive records (areas, places, visits, points, ...)
- Archive builders writing real V1/V2 .zip files into tmp_path

Note: Database session fixtures are in tests/integration/conftest.py
"""

import json
import os
import sys
import zipfile
from pathlib import Path

import pytest

# Add src to path for imports
backend_src = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(backend_src.absolute()))

# Pin the import-time log level so the global logger is configured the same
# way whichever test module imports it first
os.environ['LOG_LEVEL'] = 'INFO'


# ============================================================================
# Archive Builders
# ============================================================================

def write_v1_archive(path, data, files=None, raw_data_json=None):
    """
    Write a legacy archive: data.json plus files/.

    Args:
        path: Target .zip path
        data: Dict serialized as data.json (ignored when raw_data_json is given)
        files: Mapping of file name -> bytes stored under files/
        raw_data_json: Literal data.json text (for malformed documents)
    """
    with zipfile.ZipFile(path, 'w') as archive:
        archive.writestr('data.json', raw_data_json if raw_data_json is not None else json.dumps(data))
        for name, content in (files or {}).items():
            archive.writestr(f"files/{name}", content)
    return str(path)


def jsonl(records):
    return "\n".join(json.dumps(record) for record in records) + "\n"


def write_v2_archive(path, manifest, entries, files=None):
    """
    Write a sharded archive: manifest.json, .jsonl entries and files/.

    Args:
        path: Target .zip path
        manifest: Dict serialized as manifest.json (None to omit it)
        entries: Mapping of archive path -> list of records (or literal text/bytes)
        files: Mapping of file name -> bytes stored under files/
    """
    with zipfile.ZipFile(path, 'w') as archive:
        if manifest is not None:
            archive.writestr('manifest.json', json.dumps(manifest))
        for name, records in entries.items():
            archive.writestr(name, records if isinstance(records, (str, bytes)) else jsonl(records))
        for name, content in (files or {}).items():
            archive.writestr(f"files/{name}", content)
    return str(path)


@pytest.fixture
def v1_archive(tmp_path):
    """Factory fixture: v1_archive(data, files=None, name='export.zip') -> path."""
    def _build(data, files=None, name='export_v1.zip', raw_data_json=None):
        return write_v1_archive(tmp_path / name, data, files, raw_data_json)
    return _build


@pytest.fixture
def v2_archive(tmp_path):
    """Factory fixture: v2_archive(manifest, entries, files=None) -> path."""
    def _build(manifest, entries, files=None, name='export_v2.zip'):
        return write_v2_archive(tmp_path / name, manifest, entries, files)
    return _build


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def sample_area_records():
    """Two areas as exported (bookkeeping fields included)."""
    return [
        {
            'id': 17,
            'user_id': 99,
            'name': 'Home',
            'latitude': 40.7128,
            'longitude': -74.0060,
            'radius': 100,
            'created_at': '2024-01-01T12:00:00Z',
            'updated_at': '2024-01-01T12:00:00Z'
        },
        {
            'id': 18,
            'user_id': 99,
            'name': 'Work',
            'latitude': '40.7589',
            'longitude': '-73.9851',
            'radius': 50,
            'created_at': '2024-01-02T12:00:00Z',
            'updated_at': '2024-01-02T12:00:00Z'
        }
    ]


@pytest.fixture
def sample_import_records():
    """One import record with a payload file."""
    return [
        {
            'name': 'location_history.json',
            'source': 'google_semantic_history',
            'created_at': '2024-01-01T10:00:00Z',
            'processed': 1,
            'file_name': 'import_1_location_history.json',
            'original_filename': 'location_history.json',
            'file_size': 11,
            'content_type': 'application/json'
        }
    ]


@pytest.fixture
def sample_visit_records():
    return [
        {
            'name': 'Office Visit',
            'started_at': '2024-01-01T09:00:00Z',
            'ended_at': '2024-01-01T17:00:00Z',
            'duration': 480,
            'status': 'confirmed',
            'place_reference': {
                'name': 'Office Building',
                'latitude': '40.7589',
                'longitude': '-73.9851',
                'source': 'manual'
            }
        }
    ]


@pytest.fixture
def sample_point_records():
    """Three points: two valid (WKT and lon/lat) and one missing its timestamp."""
    return [
        {
            'timestamp': 1704103200,
            'lonlat': 'POINT(-74.006 40.7128)',
            'altitude': 10,
            'battery': 88,
            'import_reference': {
                'name': 'location_history.json',
                'source': 'google_semantic_history',
                'created_at': '2024-01-01T10:00:00Z'
            },
            'visit_reference': {
                'name': 'Office Visit',
                'started_at': '2024-01-01T09:00:00Z',
                'ended_at': '2024-01-01T17:00:00Z'
            },
            'created_at': '2024-01-01T10:00:00Z',
            'updated_at': '2024-01-01T10:00:00Z'
        },
        {
            'timestamp': 1704106800,
            'longitude': -73.9851,
            'latitude': 40.7589,
            'velocity': '1.5'
        },
        {
            'lonlat': 'POINT(-74.0 40.7)',
            'altitude': 5
        }
    ]
