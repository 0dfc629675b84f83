"""
User Data Importer - Places
Global places, matched by exact name and coordinates.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from importer.attributes import lonlat_wkt, to_float
from importer.entities.base import EntityImporter
from models.orm_place import Place

logger = logging.getLogger(__name__)

# Degrees; about 11 m at the equator
NEARBY_PLACE_TOLERANCE = 0.0001


def find_exact_place(session: Session, name: str, latitude: float, longitude: float) -> Optional[Place]:
    """Place with exactly this name and position."""
    stmt = select(Place).where(
        Place.name == name,
        Place.latitude == latitude,
        Place.longitude == longitude
    ).limit(1)
    return session.execute(stmt).scalar_one_or_none()


def find_nearby_place(
    session: Session,
    latitude: float,
    longitude: float,
    tolerance: float = NEARBY_PLACE_TOLERANCE
) -> Optional[Place]:
    """Closest place of any name within the tolerance box, if any."""
    stmt = select(Place).where(
        Place.latitude.between(latitude - tolerance, latitude + tolerance),
        Place.longitude.between(longitude - tolerance, longitude + tolerance)
    )
    candidates = session.execute(stmt).scalars().all()
    if not candidates:
        return None
    return min(candidates, key=lambda p: abs(p.latitude - latitude) + abs(p.longitude - longitude))


class PlaceImporter(EntityImporter):
    """
    Places are shared between users, so existence is checked against the
    whole table one record at a time instead of a preloaded key set.
    """
    kind = 'places'
    entity_type = 'place'
    model = Place
    required_fields = ('name', 'latitude', 'longitude')
    user_scoped = False

    def natural_key(self, record):
        return (record['name'], to_float(record['latitude']), to_float(record['longitude']))

    def key_for_existing(self, place):
        return (place.name, float(place.latitude), float(place.longitude))

    def exists(self, key) -> bool:
        place = find_exact_place(self.session, *key)
        if place is not None:
            logger.debug(f"Found exact place match: {key[0]} at ({key[1]}, {key[2]}) -> {place.id}")
            return True
        return False

    def remember(self, key) -> None:
        # Created rows are flushed, so the next exists() query sees them
        pass

    def prepare_attributes(self, record):
        attributes = super().prepare_attributes(record)
        if not attributes.get('lonlat'):
            attributes['lonlat'] = lonlat_wkt(attributes['longitude'], attributes['latitude'])
        if not attributes.get('source'):
            attributes['source'] = 'manual'
        return attributes
