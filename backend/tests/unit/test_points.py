"""
Unit Tests: Point Importer (no database)
Tests validation, attribute preparation and in-batch dedup with an injected
reference cache and a mocked session.
"""

from types import MappingProxyType
from unittest.mock import MagicMock, patch

import pytest

from importer.entities.points import PointImporter, is_valid_point
from importer.lookup_cache import ReferenceLookupCache


@pytest.fixture
def cache():
    return ReferenceLookupCache(
        imports=MappingProxyType({('history.json', 'gpx', '2024-01-01T10:00:00Z'): 11}),
        countries=MappingProxyType({('United States', 'US', 'USA'): 1, 'United States': 1}),
        visits=MappingProxyType({('Office Visit', '2024-01-01T09:00:00Z', '2024-01-01T17:00:00Z'): 21}),
    )


@pytest.fixture
def importer(cache):
    return PointImporter(MagicMock(), user_id=5, batch_size=100, lookup_cache=cache)


class TestIsValidPoint:

    def test_lonlat_and_timestamp(self):
        assert is_valid_point({'lonlat': 'POINT(-74.006 40.7128)', 'timestamp': 1704103200})

    def test_coordinates_instead_of_lonlat(self):
        assert is_valid_point({'longitude': -74.006, 'latitude': 40.7128, 'timestamp': 1704103200})

    def test_zero_coordinates_are_valid(self):
        assert is_valid_point({'longitude': 0, 'latitude': 0, 'timestamp': 1})

    def test_missing_timestamp(self):
        assert not is_valid_point({'lonlat': 'POINT(1 2)'})

    def test_missing_location(self):
        assert not is_valid_point({'timestamp': 1704103200, 'latitude': 40.7128})

    def test_lonlat_not_wkt(self):
        assert not is_valid_point({'lonlat': '40.7128,-74.006', 'timestamp': 1})

    def test_not_a_mapping(self):
        assert not is_valid_point(['POINT(1 2)', 1])


class TestPrepareAttributes:

    def test_lonlat_built_from_coordinates(self, importer):
        attributes = importer.prepare_attributes({
            'longitude': '-74.006', 'latitude': '40.7128', 'timestamp': '2024-01-01T10:00:00Z'
        })

        assert attributes['lonlat'] == 'POINT(-74.006 40.7128)'
        assert attributes['timestamp'] == 1704103200
        assert attributes['user_id'] == 5
        assert 'longitude' not in attributes
        assert 'latitude' not in attributes

    def test_references_resolved(self, importer):
        attributes = importer.prepare_attributes({
            'lonlat': 'POINT(-74.006 40.7128)',
            'timestamp': 1704103200,
            'import_reference': {'name': 'history.json', 'source': 'gpx', 'created_at': '2024-01-01T10:00:00Z'},
            'country_info': {'name': 'United States', 'iso_a2': 'US', 'iso_a3': 'USA'},
            'visit_reference': {
                'name': 'Office Visit',
                'started_at': '2024-01-01T09:00:00Z',
                'ended_at': '2024-01-01T17:00:00Z'
            },
        })

        assert attributes['import_id'] == 11
        assert attributes['country_id'] == 1
        assert attributes['visit_id'] == 21
        assert 'import_reference' not in attributes

    def test_unresolved_references_left_unset(self, importer):
        attributes = importer.prepare_attributes({
            'lonlat': 'POINT(1 2)',
            'timestamp': 1,
            'import_reference': {'name': 'unknown.json', 'source': 'gpx', 'created_at': None},
            'country_info': {'name': 'Atlantis'},
        })

        assert 'import_id' not in attributes
        assert 'country_id' not in attributes

    def test_archive_ids_discarded(self, importer):
        attributes = importer.prepare_attributes({
            'id': 99, 'user_id': 1, 'lonlat': 'POINT(1 2)', 'timestamp': 1,
            'import_id': 500, 'visit_id': 501, 'track_id': 502, 'country_id': 503,
        })

        assert attributes['user_id'] == 5
        for column in ('id', 'import_id', 'visit_id', 'track_id', 'country_id'):
            assert column not in attributes

    def test_unparseable_timestamp_returns_none_and_reports(self, cache):
        reporter = MagicMock()
        importer = PointImporter(MagicMock(), user_id=5, lookup_cache=cache, reporter=reporter)

        assert importer.prepare_attributes({'lonlat': 'POINT(1 2)', 'timestamp': 'soon'}) is None
        assert reporter.report.call_args[0][0] == 'PREPARE_FAILED'


class TestBatching:

    def test_invalid_records_counted_as_skipped(self, importer):
        importer.add({'lonlat': 'POINT(1 2)'})
        importer.add({'timestamp': 1})
        importer.add('not a record')

        assert importer.skipped_count == 2

    @patch('importer.entities.points.insert_ignore')
    def test_in_batch_duplicates_dropped_before_write(self, mock_insert, importer):
        """
        Given: two identical records and one distinct record
        When: the batch is flushed
        Then: only two rows reach the insert
        """
        mock_insert.side_effect = lambda session, model, rows: len(rows)
        record = {'lonlat': 'POINT(1 2)', 'timestamp': 1704103200}

        importer.add(record)
        importer.add(dict(record))
        importer.add({'lonlat': 'POINT(1 2)', 'timestamp': 1704103201})
        created = importer.finalize()

        assert created == 2
        assert importer.duplicates == 1
        assert len(mock_insert.call_args[0][2]) == 2

    @patch('importer.entities.points.insert_ignore')
    def test_flushes_every_batch_size_rows(self, mock_insert, cache):
        mock_insert.side_effect = lambda session, model, rows: len(rows)
        importer = PointImporter(MagicMock(), user_id=5, batch_size=2, lookup_cache=cache)

        created = importer.import_all([{'lonlat': 'POINT(1 2)', 'timestamp': ts} for ts in range(5)])

        assert created == 5
        assert [len(call[0][2]) for call in mock_insert.call_args_list] == [2, 2, 1]

    @patch('importer.entities.points.insert_ignore')
    def test_stored_duplicates_not_counted_as_created(self, mock_insert, importer):
        mock_insert.return_value = 1

        importer.import_all([
            {'lonlat': 'POINT(1 2)', 'timestamp': 1},
            {'lonlat': 'POINT(1 2)', 'timestamp': 2},
        ])

        assert importer.created == 1
        assert importer.duplicates == 1

    def test_non_list_input(self, importer):
        assert importer.import_all({'lonlat': 'POINT(1 2)'}) == 0
