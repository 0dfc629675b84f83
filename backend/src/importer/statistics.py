"""
User Data Importer - Import Statistics
Per-run accumulator returned to the caller of an archive import.
"""

from dataclasses import dataclass, asdict, fields
from typing import Dict, Mapping

# Fixed cross-kind dependency order. Later kinds resolve references to
# records created by earlier ones.
ENTITY_KINDS = (
    'areas',
    'places',
    'tags',
    'taggings',
    'imports',
    'exports',
    'trips',
    'stats',
    'digests',
    'notifications',
    'visits',
    'tracks',
    'points',
    'raw_data_archives',
)

# Order of the user-facing summary sentence
SUMMARY_ORDER = (
    'points', 'visits', 'places', 'trips', 'areas', 'imports', 'exports',
    'stats', 'notifications', 'tracks', 'digests', 'tags', 'taggings', 'raw_data_archives',
)


@dataclass
class ImportStatistics:
    """Created counts per entity kind plus file and settings outcome."""
    settings_updated: bool = False
    areas_created: int = 0
    places_created: int = 0
    tags_created: int = 0
    taggings_created: int = 0
    imports_created: int = 0
    exports_created: int = 0
    trips_created: int = 0
    stats_created: int = 0
    digests_created: int = 0
    notifications_created: int = 0
    visits_created: int = 0
    tracks_created: int = 0
    points_created: int = 0
    raw_data_archives_created: int = 0
    files_restored: int = 0
    points_skipped: int = 0

    def add_created(self, kind: str, count: int) -> None:
        """Add to the created count of an entity kind."""
        attr = f"{kind}_created"
        setattr(self, attr, getattr(self, attr) + int(count or 0))

    def created(self, kind: str) -> int:
        return getattr(self, f"{kind}_created", 0)

    def add_files_restored(self, count: int) -> None:
        self.files_restored += int(count or 0)

    @property
    def total_created(self) -> int:
        return sum(self.created(kind) for kind in ENTITY_KINDS)

    def created_counts(self) -> Dict[str, int]:
        """Mapping of ``<kind>_created`` to count, for logging."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name.endswith('_created')}

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)

    def summary(self) -> str:
        """Human-readable count summary used in the completion notification."""
        parts = [f"{self.created(kind)} {kind.replace('_', ' ')}" for kind in SUMMARY_ORDER]
        parts.insert(SUMMARY_ORDER.index('stats') + 1, f"{self.files_restored} files restored")
        return ", ".join(parts)

    def discrepancies(self, expected_counts: Mapping[str, object]) -> Dict[str, Dict[str, int]]:
        """
        Compare created counts against the counts an archive declares.

        Only shortfalls are reported: on re-import everything already exists
        and created counts are legitimately lower, so callers log these as
        warnings, never as errors.

        Args:
            expected_counts: kind -> count as exported

        Returns:
            kind -> {"expected", "created", "missing"} for each shortfall
        """
        result = {}
        for kind, expected in (expected_counts or {}).items():
            if kind not in ENTITY_KINDS:
                continue
            try:
                expected = int(expected)
            except (TypeError, ValueError):
                continue
            created = self.created(kind)
            if created < expected:
                result[kind] = {"expected": expected, "created": created, "missing": expected - created}
        return result
