"""
Unit Tests: Reference Lookup Cache
Tests resolution of embedded reference payloads against preloaded maps.
"""

import dataclasses
from types import MappingProxyType

import pytest

from importer.lookup_cache import ReferenceLookupCache


@pytest.fixture
def cache():
    return ReferenceLookupCache(
        imports=MappingProxyType({
            ('history.json', 'google_semantic_history', '2024-01-01T10:00:00Z'): 11,
            ('history.json', 0, '2024-01-01T10:00:00Z'): 11,
        }),
        countries=MappingProxyType({
            ('United States', 'US', 'USA'): 1,
            'United States': 1,
            ('Germany', 'DE', 'DEU'): 2,
            'Germany': 2,
        }),
        visits=MappingProxyType({
            ('Office Visit', '2024-01-01T09:00:00Z', '2024-01-01T17:00:00Z'): 21,
        }),
    )


class TestResolveImport:

    def test_by_source_name(self, cache):
        ref = {'name': 'history.json', 'source': 'google_semantic_history', 'created_at': '2024-01-01T10:00:00Z'}

        assert cache.resolve_import(ref) == 11

    def test_by_source_enum_value(self, cache):
        ref = {'name': 'history.json', 'source': 0, 'created_at': '2024-01-01T10:00:00.000Z'}

        assert cache.resolve_import(ref) == 11

    def test_created_at_with_offset(self, cache):
        ref = {'name': 'history.json', 'source': 'google_semantic_history', 'created_at': '2024-01-01T11:00:00+01:00'}

        assert cache.resolve_import(ref) == 11

    def test_unresolved(self, cache):
        ref = {'name': 'other.json', 'source': 'gpx', 'created_at': '2024-01-01T10:00:00Z'}

        assert cache.resolve_import(ref) is None

    def test_non_mapping(self, cache):
        assert cache.resolve_import(None) is None
        assert cache.resolve_import('history.json') is None


class TestResolveCountry:

    def test_full_key(self, cache):
        assert cache.resolve_country({'name': 'Germany', 'iso_a2': 'DE', 'iso_a3': 'DEU'}) == 2

    def test_name_only_fallback(self, cache):
        assert cache.resolve_country({'name': 'Germany', 'iso_a2': None, 'iso_a3': None}) == 2

    def test_unknown_country(self, cache):
        assert cache.resolve_country({'name': 'Atlantis'}) is None


class TestResolveVisit:

    def test_resolved(self, cache):
        ref = {'name': 'Office Visit', 'started_at': '2024-01-01T09:00:00Z', 'ended_at': '2024-01-01T17:00:00Z'}

        assert cache.resolve_visit(ref) == 21

    def test_wrong_time(self, cache):
        ref = {'name': 'Office Visit', 'started_at': '2024-01-01T09:00:01Z', 'ended_at': '2024-01-01T17:00:00Z'}

        assert cache.resolve_visit(ref) is None


class TestImmutability:

    def test_fields_cannot_be_reassigned(self, cache):
        with pytest.raises(dataclasses.FrozenInstanceError):
            cache.visits = {}

    def test_maps_are_read_only(self, cache):
        with pytest.raises(TypeError):
            cache.visits[('x', None, None)] = 1

    def test_default_cache_is_empty(self):
        empty = ReferenceLookupCache()

        assert len(empty.imports) == 0
        assert empty.resolve_visit({'name': 'x'}) is None
