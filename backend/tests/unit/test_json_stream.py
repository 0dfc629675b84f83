"""
Unit Tests: Streaming Document Parser
Tests section dispatch, element streaming and malformed-document handling.
"""

import io
import json

import pytest

from importer.exceptions import ArchiveFormatError, DocumentParseError
from importer.json_stream import StreamingDocumentParser


class RecordingHandler:
    """SectionHandler that records every callback in order."""

    def __init__(self):
        self.calls = []

    def handle_section(self, key, value):
        self.calls.append(('section', key, value))

    def handle_stream_value(self, section, value):
        self.calls.append(('value', section, value))

    def finish_stream(self, section):
        self.calls.append(('finish', section))


def parse(document):
    handler = RecordingHandler()
    data = document if isinstance(document, bytes) else json.dumps(document).encode('utf-8')
    StreamingDocumentParser(handler).parse(io.BytesIO(data))
    return handler.calls


class TestSectionDispatch:
    """Non-streamed sections arrive whole, streamed ones element by element."""

    def test_whole_sections_delivered_materialized(self):
        """counts/settings/areas are handed over as complete values."""
        calls = parse({
            'counts': {'areas': 1},
            'settings': {'theme': 'dark', 'nested': {'a': [1, 2]}},
            'areas': [{'name': 'Home', 'latitude': 1.5}]
        })

        assert calls == [
            ('section', 'counts', {'areas': 1}),
            ('section', 'settings', {'theme': 'dark', 'nested': {'a': [1, 2]}}),
            ('section', 'areas', [{'name': 'Home', 'latitude': 1.5}]),
        ]

    def test_streamed_sections_deliver_each_element_then_finish(self):
        calls = parse({
            'points': [{'timestamp': 1}, {'timestamp': 2}],
            'visits': [{'name': 'A'}]
        })

        assert calls == [
            ('value', 'points', {'timestamp': 1}),
            ('value', 'points', {'timestamp': 2}),
            ('finish', 'points'),
            ('value', 'visits', {'name': 'A'}),
            ('finish', 'visits'),
        ]

    def test_callbacks_follow_document_order(self):
        calls = parse(b'{"places": [{"name": "P"}], "areas": [], "points": []}')

        assert [c[0:2] for c in calls] == [
            ('value', 'places'),
            ('finish', 'places'),
            ('section', 'areas'),
            ('finish', 'points'),
        ]

    def test_empty_streamed_array_still_finishes(self):
        assert parse({'places': []}) == [('finish', 'places')]

    def test_streamed_section_that_is_not_an_array_is_delivered_whole(self):
        assert parse({'points': None}) == [('section', 'points', None)]

    def test_nested_arrays_inside_streamed_elements(self):
        """Elements with nested containers are rebuilt completely."""
        element = {'name': 'V', 'tags': [['a', 'b'], []], 'meta': {'x': {'y': [1]}}}
        calls = parse({'visits': [element, {'name': 'W'}]})

        assert calls[0] == ('value', 'visits', element)
        assert calls[1] == ('value', 'visits', {'name': 'W'})

    def test_numbers_decoded_as_floats_and_ints(self):
        calls = parse(b'{"points": [{"timestamp": 1704103200, "lat": 40.7128}]}')

        value = calls[0][2]
        assert value['timestamp'] == 1704103200
        assert isinstance(value['lat'], float)

    def test_custom_streamed_sections(self):
        handler = RecordingHandler()
        StreamingDocumentParser(handler, streamed_sections=('areas',)).parse(
            io.BytesIO(b'{"areas": [{"name": "A"}], "points": [1]}')
        )

        assert handler.calls == [
            ('value', 'areas', {'name': 'A'}),
            ('finish', 'areas'),
            ('section', 'points', [1]),
        ]


class TestMalformedDocuments:
    """Malformed JSON is fatal and reported as DocumentParseError."""

    def test_truncated_document_raises(self):
        with pytest.raises(DocumentParseError) as exc_info:
            parse(b'{"points": [{"timestamp": 1}')

        assert 'Invalid JSON format in data file' in str(exc_info.value)

    def test_garbage_raises(self):
        with pytest.raises(DocumentParseError):
            parse(b'{not json at all')

    def test_trailing_garbage_raises(self):
        with pytest.raises(DocumentParseError):
            parse(b'{"areas": []} trailing')

    def test_root_array_rejected(self):
        with pytest.raises(DocumentParseError) as exc_info:
            parse(b'[{"areas": []}]')

        assert 'root must be an object' in str(exc_info.value)

    def test_empty_document_rejected(self):
        with pytest.raises(DocumentParseError):
            parse(b'')

    def test_document_parse_error_is_archive_format_error(self):
        """Callers catching ArchiveFormatError also see parse failures."""
        assert issubclass(DocumentParseError, ArchiveFormatError)

