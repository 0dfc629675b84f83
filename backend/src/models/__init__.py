# Location History Import - Models Package

# Import all ORM models to register them with SQLAlchemy's declarative base
# This ensures string-based relationship() forward references can be resolved
# IMPORTANT: Use relative imports to avoid duplicate module loading issues
from .base import Base, SessionLocal, create_session
from .orm_user import User, Country
from .orm_area import Area, DEFAULT_AREA_RADIUS
from .orm_place import Place
from .orm_tag import Tag, Tagging
from .orm_import import Import, IMPORT_SOURCES
from .orm_export import Export
from .orm_trip import Trip
from .orm_stats import Stat, Digest, DIGEST_PERIOD_TYPES
from .orm_notification import Notification
from .orm_visit import Visit
from .orm_track import Track, TrackSegment
from .orm_point import Point
from .orm_raw_data_archive import RawDataArchive
from .orm_attachment import Attachment
from .orm_import_run import ImportRun, ImportRunStatus
from .orm_import_issue import ImportIssue, ImportIssueType

__all__ = [
    'Base',
    'SessionLocal',
    'create_session',
    'User',
    'Country',
    'Area',
    'DEFAULT_AREA_RADIUS',
    'Place',
    'Tag',
    'Tagging',
    'Import',
    'IMPORT_SOURCES',
    'Export',
    'Trip',
    'Stat',
    'Digest',
    'DIGEST_PERIOD_TYPES',
    'Notification',
    'Visit',
    'Track',
    'TrackSegment',
    'Point',
    'RawDataArchive',
    'Attachment',
    'ImportRun',
    'ImportRunStatus',
    'ImportIssue',
    'ImportIssueType',
]
