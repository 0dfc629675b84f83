"""
User Data Importer - Simple User-Scoped Records
Areas, tags, trips, stats, digests and notifications: records that need no
reference resolution and no file restoration.
"""

import uuid
from typing import Any, Dict

from importer.attributes import to_float
from importer.entities.base import EntityImporter
from models.orm_area import Area, DEFAULT_AREA_RADIUS
from models.orm_notification import Notification, NOTIFICATION_KINDS
from models.orm_stats import Stat, Digest, DIGEST_PERIOD_TYPES
from models.orm_tag import Tag
from models.orm_trip import Trip
from utils.timezone import to_iso8601, to_key_timestamp, utc_now


def _int_or_none(value: Any):
    return None if value is None or value == '' else int(value)


class AreaImporter(EntityImporter):
    """Areas match on (name, latitude, longitude) within the user."""
    kind = 'areas'
    entity_type = 'area'
    model = Area
    required_fields = ('name', 'latitude', 'longitude')

    def natural_key(self, record):
        return (record['name'], to_float(record['latitude']), to_float(record['longitude']))

    def key_for_existing(self, area):
        return (area.name, float(area.latitude), float(area.longitude))

    def prepare_attributes(self, record):
        attributes = super().prepare_attributes(record)
        if attributes.get('radius') is None:
            attributes['radius'] = DEFAULT_AREA_RADIUS
        return attributes


class TagImporter(EntityImporter):
    """Tags match on name within the user."""
    kind = 'tags'
    entity_type = 'tag'
    model = Tag
    required_fields = ('name',)

    def natural_key(self, record):
        return str(record['name']).strip()

    def key_for_existing(self, tag):
        return tag.name.strip()


class TripImporter(EntityImporter):
    kind = 'trips'
    entity_type = 'trip'
    model = Trip
    required_fields = ('name', 'started_at', 'ended_at')

    def natural_key(self, record):
        return (record['name'], to_key_timestamp(record['started_at']), to_key_timestamp(record['ended_at']))

    def key_for_existing(self, trip):
        return (trip.name, to_iso8601(trip.started_at), to_iso8601(trip.ended_at))


class StatImporter(EntityImporter):
    """
    Stats match on (year, month). Sharing links are never carried over:
    every imported stat gets a fresh sharing_uuid.
    """
    kind = 'stats'
    entity_type = 'stat'
    model = Stat
    required_fields = ('year', 'month', 'distance')
    excluded_fields = EntityImporter.excluded_fields | {'sharing_uuid'}

    def natural_key(self, record):
        return (int(record['year']), int(record['month']))

    def key_for_existing(self, stat):
        return (stat.year, stat.month)

    def prepare_attributes(self, record):
        attributes = super().prepare_attributes(record)
        attributes['sharing_uuid'] = str(uuid.uuid4())
        return attributes


class DigestImporter(EntityImporter):
    """Digests match on (year, month, period_type); month is empty for yearly digests."""
    kind = 'digests'
    entity_type = 'digest'
    model = Digest
    required_fields = ('year', 'period_type')
    excluded_fields = EntityImporter.excluded_fields | {'sharing_uuid'}

    def natural_key(self, record):
        period_type = str(record['period_type'])
        if period_type not in DIGEST_PERIOD_TYPES:
            raise ValueError(f"Unknown digest period type: {period_type}")
        return (int(record['year']), _int_or_none(record.get('month')), period_type)

    def key_for_existing(self, digest):
        return (digest.year, digest.month, digest.period_type)

    def prepare_attributes(self, record):
        attributes = super().prepare_attributes(record)
        attributes['sharing_uuid'] = str(uuid.uuid4())
        return attributes


class NotificationImporter(EntityImporter):
    """
    Notifications match on (title, content), or on (title, content,
    created_at) when the archive carries a timestamp. The original
    created_at is preserved.
    """
    kind = 'notifications'
    entity_type = 'notification'
    model = Notification
    required_fields = ('title', 'content')
    excluded_fields = frozenset({'id', 'user_id', 'updated_at'})

    def natural_key(self, record):
        title = str(record['title']).strip()
        content = str(record['content']).strip()
        keys = {(title, content)}
        created_at = to_key_timestamp(record.get('created_at'))
        if created_at:
            keys.add((title, content, created_at))
        return frozenset(keys)

    def key_for_existing(self, notification):
        title = notification.title.strip()
        content = notification.content.strip()
        return frozenset({(title, content), (title, content, to_iso8601(notification.created_at))})

    def prepare_attributes(self, record: Dict[str, Any]):
        attributes = super().prepare_attributes(record)
        if attributes.get('created_at') is None:
            attributes['created_at'] = utc_now()
        if attributes.get('kind') not in NOTIFICATION_KINDS:
            attributes['kind'] = 'info'
        return attributes
