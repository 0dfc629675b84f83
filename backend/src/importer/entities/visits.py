"""
User Data Importer - Visits
Visits carry their place and area as embedded reference payloads.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select

from importer.attributes import lonlat_wkt, to_float
from importer.entities.base import EntityImporter
from importer.entities.places import find_exact_place, find_nearby_place
from models.orm_area import Area
from models.orm_place import Place
from models.orm_visit import Visit
from utils.timezone import to_iso8601, to_key_timestamp

logger = logging.getLogger(__name__)

REFERENCE_FIELDS = frozenset({'place_reference', 'area_reference', 'place_id', 'area_id'})


class VisitImporter(EntityImporter):
    """
    Visits match on (name, started_at, ended_at) within the user.

    ``place_reference`` resolves to an exact place, then to the closest place
    in a small box around the coordinates, and otherwise a new manual place
    is created inside the visit's savepoint. ``area_reference`` resolves to
    one of the user's areas by (name, latitude, longitude).
    """
    kind = 'visits'
    entity_type = 'visit'
    model = Visit
    required_fields = ('name', 'started_at', 'ended_at')
    excluded_fields = EntityImporter.excluded_fields | REFERENCE_FIELDS

    def natural_key(self, record):
        return (record['name'], to_key_timestamp(record['started_at']), to_key_timestamp(record['ended_at']))

    def key_for_existing(self, visit):
        return (visit.name, to_iso8601(visit.started_at), to_iso8601(visit.ended_at))

    def prepare_attributes(self, record):
        attributes = super().prepare_attributes(record)

        place = self.resolve_place(record.get('place_reference'))
        if place is not None:
            attributes['place_id'] = place.id

        area_id = self.resolve_area(record.get('area_reference'))
        if area_id is not None:
            attributes['area_id'] = area_id

        return attributes

    def resolve_place(self, reference: Any) -> Optional[Place]:
        """
        Find or create the place a visit refers to.

        Args:
            reference: ``place_reference`` payload (name, latitude, longitude, source)

        Returns:
            Place, or None when the payload is absent or incomplete
        """
        if not isinstance(reference, dict):
            return None
        name = reference.get('name')
        latitude = reference.get('latitude')
        longitude = reference.get('longitude')
        if not name or latitude is None or longitude is None:
            return None

        latitude = to_float(latitude)
        longitude = to_float(longitude)

        place = find_exact_place(self.session, name, latitude, longitude)
        if place is not None:
            return place

        place = find_nearby_place(self.session, latitude, longitude)
        if place is not None:
            logger.debug(f"Using nearby place {place.id} for visit place '{name}'")
            return place

        place = Place(
            name=name,
            latitude=latitude,
            longitude=longitude,
            lonlat=lonlat_wkt(longitude, latitude),
            source=reference.get('source') or 'manual'
        )
        self.session.add(place)
        self.session.flush()
        logger.debug(f"Created place '{name}' for visit")
        return place

    def resolve_area(self, reference: Any) -> Optional[int]:
        if not isinstance(reference, dict):
            return None
        name = reference.get('name')
        latitude = reference.get('latitude')
        longitude = reference.get('longitude')
        if not name or latitude is None or longitude is None:
            return None

        stmt = select(Area.id).where(
            Area.user_id == self.user_id,
            Area.name == name,
            Area.latitude == to_float(latitude),
            Area.longitude == to_float(longitude)
        ).limit(1)
        area_id = self.session.execute(stmt).scalar_one_or_none()
        if area_id is None:
            logger.debug(f"Area not found for visit reference: {reference}")
        return area_id
