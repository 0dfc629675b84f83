"""
User Data Importer - Tracks
Tracks and their ordered transport-mode segments.
"""

from importer.attributes import build_attributes
from importer.entities.base import EntityImporter
from models.orm_track import Track, TrackSegment
from utils.timezone import to_iso8601, to_key_timestamp

SEGMENT_EXCLUDED_FIELDS = frozenset({'id', 'track_id', 'created_at', 'updated_at'})


class TrackImporter(EntityImporter):
    """
    Tracks match on (start_at, end_at) within the user. Segments are
    created right after their track, in archive order, inside the same
    savepoint; a track without segments is still imported.
    """
    kind = 'tracks'
    entity_type = 'track'
    model = Track
    required_fields = ('start_at', 'end_at')
    excluded_fields = EntityImporter.excluded_fields | {'segments'}

    def natural_key(self, record):
        return (to_key_timestamp(record['start_at']), to_key_timestamp(record['end_at']))

    def key_for_existing(self, track):
        return (to_iso8601(track.start_at), to_iso8601(track.end_at))

    def after_create(self, track, record):
        segments = record.get('segments')
        if not isinstance(segments, list):
            return

        for segment in segments:
            if not isinstance(segment, dict):
                continue
            attributes = build_attributes(TrackSegment, segment, SEGMENT_EXCLUDED_FIELDS)
            if attributes.get('start_index') is None or attributes.get('end_index') is None:
                raise ValueError(f"Track segment without index range: {segment!r}")
            self.session.add(TrackSegment(track_id=track.id, **attributes))

        self.session.flush()
