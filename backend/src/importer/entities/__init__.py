"""
Per-entity importers, one per archived record kind.
"""

from importer.entities.base import EntityImporter
from importer.entities.file_backed import ExportRecordImporter, ImportRecordImporter, RawDataArchiveImporter
from importer.entities.places import PlaceImporter
from importer.entities.points import PointImporter
from importer.entities.settings import SettingsImporter
from importer.entities.taggings import TaggingImporter
from importer.entities.tracks import TrackImporter
from importer.entities.user_records import (
    AreaImporter,
    DigestImporter,
    NotificationImporter,
    StatImporter,
    TagImporter,
    TripImporter,
)
from importer.entities.visits import VisitImporter

# Record-oriented importers by kind; points and settings have their own interfaces
ENTITY_IMPORTERS = {
    importer.kind: importer
    for importer in (
        AreaImporter,
        PlaceImporter,
        TagImporter,
        TaggingImporter,
        ImportRecordImporter,
        ExportRecordImporter,
        TripImporter,
        StatImporter,
        DigestImporter,
        NotificationImporter,
        VisitImporter,
        TrackImporter,
        RawDataArchiveImporter,
    )
}

__all__ = [
    'ENTITY_IMPORTERS',
    'EntityImporter',
    'AreaImporter',
    'PlaceImporter',
    'TagImporter',
    'TaggingImporter',
    'ImportRecordImporter',
    'ExportRecordImporter',
    'TripImporter',
    'StatImporter',
    'DigestImporter',
    'NotificationImporter',
    'VisitImporter',
    'TrackImporter',
    'RawDataArchiveImporter',
    'PointImporter',
    'SettingsImporter',
]
