"""
User Data Importer - Taggings
Re-links imported tags to imported places.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select

from importer.attributes import to_float
from importer.entities.base import EntityImporter
from importer.entities.places import find_exact_place
from models.orm_tag import Tag, Tagging

logger = logging.getLogger(__name__)

TAGGABLE_TYPES = ('Place',)


class TaggingImporter(EntityImporter):
    """
    Archived taggings name their tag and target instead of carrying ids:
    ``tag_name``, ``taggable_type``, ``taggable_name``,
    ``taggable_latitude``, ``taggable_longitude``.

    Both ends are resolved against records imported earlier in the run; a
    tagging whose tag or place cannot be found is skipped.
    """
    kind = 'taggings'
    entity_type = 'tagging'
    model = Tagging
    required_fields = ('tag_name', 'taggable_type')
    user_scoped = False

    def __init__(self, session, user_id, reporter=None):
        super().__init__(session, user_id, reporter)
        self._tag_ids: Optional[Dict[str, int]] = None

    def _tag_id(self, name: str) -> Optional[int]:
        if self._tag_ids is None:
            stmt = select(Tag.name, Tag.id).where(Tag.user_id == self.user_id)
            self._tag_ids = {tag_name.strip(): tag_id for tag_name, tag_id in self.session.execute(stmt)}
        return self._tag_ids.get(str(name).strip())

    def _taggable_id(self, record: Dict[str, Any]) -> Optional[int]:
        if record.get('taggable_type') not in TAGGABLE_TYPES:
            return None
        name = record.get('taggable_name')
        latitude = record.get('taggable_latitude')
        longitude = record.get('taggable_longitude')
        if name is None or latitude is None or longitude is None:
            return None
        place = find_exact_place(self.session, name, to_float(latitude), to_float(longitude))
        return place.id if place else None

    def natural_key(self, record) -> Optional[Tuple[int, str, int]]:
        tag_id = self._tag_id(record['tag_name'])
        if tag_id is None:
            logger.debug(f"Tag not found for tagging: {record.get('tag_name')}")
            return None
        taggable_id = self._taggable_id(record)
        if taggable_id is None:
            logger.debug(f"Taggable not found for tagging: {record.get('taggable_name')}")
            return None
        return (tag_id, record['taggable_type'], taggable_id)

    def existing_query(self):
        return select(Tagging).join(Tag, Tagging.tag_id == Tag.id).where(Tag.user_id == self.user_id)

    def key_for_existing(self, tagging):
        return (tagging.tag_id, tagging.taggable_type, tagging.taggable_id)

    def prepare_attributes(self, record):
        tag_id, taggable_type, taggable_id = self.natural_key(record)
        return {'tag_id': tag_id, 'taggable_type': taggable_type, 'taggable_id': taggable_id}
