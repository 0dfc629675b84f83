"""
Integration test fixtures and configuration.

Provides an in-memory SQLite database for integration testing.

Fixture Types:
- sqlite_engine: Fresh schema per test (StaticPool keeps the single
  in-memory connection alive across sessions)
- db_session: ORM session bound to that engine
- user / other_user: Import targets
- file_storage: Attachment storage rooted in tmp_path

The engine is built through database.connection.build_engine so the
savepoint recipe the importers rely on is active, exactly as in workers
pointed at SQLite through DATABASE_URL.
"""

import pytest
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

import models  # noqa: F401  (registers every table on Base.metadata)
from database.connection import build_engine
from models.base import Base
from models.orm_user import Country, User
from utils.file_storage import FileStorage


# =============================================================================
# Test Database Connection
# =============================================================================

@pytest.fixture
def sqlite_engine():
    """
    Create an in-memory SQLite engine with the full schema.

    Yields:
        SQLAlchemy engine
    """
    engine = build_engine(
        'sqlite://',
        poolclass=StaticPool,
        connect_args={'check_same_thread': False}
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(sqlite_engine):
    """
    ORM session for one test.

    expire_on_commit=False matches SessionLocal, so objects stay readable
    after the per-phase commits the importers perform.
    """
    session = Session(bind=sqlite_engine, expire_on_commit=False)
    yield session
    session.close()


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def user(db_session):
    user = User(email='importer@example.com', settings={'theme': 'dark', 'units': 'km'})
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def other_user(db_session):
    user = User(email='other@example.com')
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def countries(db_session):
    """Reference countries used by point country_info payloads."""
    rows = [
        Country(name='United States', iso_a2='US', iso_a3='USA'),
        Country(name='Germany', iso_a2='DE', iso_a3='DEU'),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return {country.iso_a2: country for country in rows}


@pytest.fixture
def file_storage(tmp_path):
    return FileStorage(str(tmp_path / 'storage'))


@pytest.fixture
def scratch_root(tmp_path):
    """Parent directory for extraction scratch dirs, checked for leftovers."""
    path = tmp_path / 'scratch'
    path.mkdir()
    return str(path)


# =============================================================================
# Full Export Fixture
# =============================================================================

EXPORT_FILES = {
    'import_1_location_history.json': b'{"timelineObjects": []}',
    'export_1_export_2024.json': b'{"type": "FeatureCollection"}',
    'raw_2024_01.jsonl.gz': b'\x1f\x8b\x08\x00compressed',
}


@pytest.fixture
def full_export(sample_area_records, sample_import_records, sample_visit_records, sample_point_records):
    """
    One record (or more) of every kind, keyed by section in dependency order.

    Expected outcome of importing it into an empty database: two of each
    areas/places/points, one of every other kind, three files restored
    and one point skipped for its missing timestamp.
    """
    return {
        'settings': {'theme': 'light', 'maps': {'distance_unit': 'mi'}},
        'areas': sample_area_records,
        'places': [
            {'name': 'Office Building', 'latitude': 40.7589, 'longitude': -73.9851, 'source': 'manual'},
            {'name': 'Corner Cafe', 'latitude': 40.7, 'longitude': -74.0, 'city': 'New York'},
        ],
        'tags': [{'name': 'Work', 'icon': 'briefcase', 'color': '#ff0000'}],
        'taggings': [{
            'tag_name': 'Work',
            'taggable_type': 'Place',
            'taggable_name': 'Office Building',
            'taggable_latitude': 40.7589,
            'taggable_longitude': -73.9851,
        }],
        'imports': sample_import_records,
        'exports': [{
            'name': 'export_2024.json',
            'status': 'completed',
            'file_format': 'json',
            'created_at': '2024-02-01T00:00:00Z',
            'file_name': 'export_1_export_2024.json',
        }],
        'trips': [{
            'name': 'Manhattan Walk',
            'started_at': '2024-01-01T08:00:00Z',
            'ended_at': '2024-01-01T18:00:00Z',
            'distance': 12.5,
            'visited_countries': ['United States'],
        }],
        'stats': [{
            'year': 2024, 'month': 1, 'distance': 1500,
            'daily_distance': {'1': 100}, 'sharing_uuid': 'shared-elsewhere',
        }],
        'digests': [{'year': 2024, 'period_type': 'yearly', 'distance': 1500}],
        'notifications': [{
            'title': 'Welcome', 'content': 'Hello there', 'kind': 'info',
            'created_at': '2024-01-01T00:00:00Z',
        }],
        'visits': sample_visit_records,
        'tracks': [{
            'start_at': '2024-01-01T09:00:00Z',
            'end_at': '2024-01-01T10:00:00Z',
            'distance': 5.0,
            'segments': [
                {'transportation_mode': 'walking', 'start_index': 0, 'end_index': 4},
                {'transportation_mode': 'subway', 'start_index': 4, 'end_index': 9},
            ],
        }],
        'points': sample_point_records,
        'raw_data_archives': [{
            'year': 2024, 'month': 1, 'chunk_number': 1, 'point_count': 2,
            'metadata': {'format': 'jsonl'}, 'file_name': 'raw_2024_01.jsonl.gz',
        }],
    }


@pytest.fixture
def full_export_counts(full_export):
    return {kind: len(records) for kind, records in full_export.items() if isinstance(records, list)}


@pytest.fixture
def full_v1_archive(v1_archive, full_export, full_export_counts):
    return v1_archive({'counts': full_export_counts, **full_export}, files=EXPORT_FILES)


@pytest.fixture
def full_v2_archive(v2_archive, full_export, full_export_counts):
    """The same dataset in the sharded layout, monthly kinds under <kind>/2024/."""
    sharded = ('points', 'visits', 'stats', 'tracks', 'digests')
    entries = {'settings.jsonl': [full_export['settings']]}
    files = {}
    for kind, records in full_export.items():
        if kind == 'settings':
            continue
        if kind in sharded:
            path = f"{kind}/2024/2024-01.jsonl"
            files[kind] = [path]
            entries[path] = records
        else:
            entries[f"{kind}.jsonl"] = records
    manifest = {'format_version': 2, 'counts': full_export_counts, 'files': files}
    return v2_archive(manifest, entries, files=EXPORT_FILES)
