"""
User Data Importer - Reference Lookup Cache
Resolves embedded point references to ids of already-imported records.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.orm_import import Import
from models.orm_user import Country
from models.orm_visit import Visit
from utils.timezone import to_iso8601, to_key_timestamp

logger = logging.getLogger(__name__)


def _frozen(mapping: Optional[dict] = None) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class ReferenceLookupCache:
    """
    Immutable snapshot of the user's imports, all countries and the user's
    visits, keyed by their natural keys.

    Built once per run at first use and never refreshed: records created
    after the snapshot do not resolve. The fixed import order (visits before
    points) makes this safe for archives produced by the exporter.

    Key shapes:
        imports:   (name, source, created_at) with source as name or integer value
        countries: (name, iso_a2, iso_a3) and, as fallback, the bare name
        visits:    (name, started_at, ended_at)
    """
    imports: Mapping[Tuple[Any, Any, Optional[str]], int] = field(default_factory=_frozen)
    countries: Mapping[Any, int] = field(default_factory=_frozen)
    visits: Mapping[Tuple[Any, Optional[str], Optional[str]], int] = field(default_factory=_frozen)

    @classmethod
    def build(cls, session: Session, user_id: int) -> 'ReferenceLookupCache':
        """
        Load the lookup maps with three queries.

        Args:
            session: SQLAlchemy session
            user_id: Owner of imports and visits

        Returns:
            ReferenceLookupCache
        """
        imports = {}
        stmt = select(Import.id, Import.name, Import.source, Import.created_at).where(Import.user_id == user_id)
        for import_id, name, source, created_at in session.execute(stmt):
            created_key = to_iso8601(created_at)
            imports[(name, source, created_key)] = import_id
            source_value = Import.source_value(source)
            if source_value is not None:
                imports[(name, source_value, created_key)] = import_id

        countries = {}
        stmt = select(Country.id, Country.name, Country.iso_a2, Country.iso_a3)
        for country_id, name, iso_a2, iso_a3 in session.execute(stmt):
            countries[(name, iso_a2, iso_a3)] = country_id
            countries.setdefault(name, country_id)

        visits = {}
        stmt = select(Visit.id, Visit.name, Visit.started_at, Visit.ended_at).where(Visit.user_id == user_id)
        for visit_id, name, started_at, ended_at in session.execute(stmt):
            visits[(name, to_iso8601(started_at), to_iso8601(ended_at))] = visit_id

        logger.debug(
            f"Loaded reference cache: {len(imports)} import keys, "
            f"{len(countries)} country keys, {len(visits)} visits"
        )
        return cls(imports=_frozen(imports), countries=_frozen(countries), visits=_frozen(visits))

    def resolve_import(self, reference: Any) -> Optional[int]:
        """Import id for an ``import_reference`` payload, or None."""
        if not isinstance(reference, dict):
            return None
        key = (reference.get('name'), reference.get('source'), to_key_timestamp(reference.get('created_at')))
        import_id = self.imports.get(key)
        if import_id is None:
            logger.debug(f"Import not found for reference: {reference}")
        return import_id

    def resolve_country(self, country_info: Any) -> Optional[int]:
        """Country id for a ``country_info`` payload, falling back to name-only."""
        if not isinstance(country_info, dict):
            return None
        name = country_info.get('name')
        country_id = self.countries.get((name, country_info.get('iso_a2'), country_info.get('iso_a3')))
        if country_id is None and name:
            country_id = self.countries.get(name)
        if country_id is None:
            logger.debug(f"Country not found for: {country_info}")
        return country_id

    def resolve_visit(self, reference: Any) -> Optional[int]:
        """Visit id for a ``visit_reference`` payload, or None."""
        if not isinstance(reference, dict):
            return None
        key = (
            reference.get('name'),
            to_key_timestamp(reference.get('started_at')),
            to_key_timestamp(reference.get('ended_at')),
        )
        visit_id = self.visits.get(key)
        if visit_id is None:
            logger.debug(f"Visit not found for reference: {reference}")
        return visit_id
