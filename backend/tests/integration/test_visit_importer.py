"""
Integration Tests: Visit Importer
Tests place/area reference resolution and visit deduplication.
"""

from sqlalchemy import func, select

from importer.entities import VisitImporter
from importer.issue_reporter import IssueReporter
from models.orm_area import Area
from models.orm_place import Place
from models.orm_visit import Visit


def place_count(session):
    return session.execute(select(func.count()).select_from(Place)).scalar_one()


def visit(name='Office Visit', started_at='2024-01-01T09:00:00Z', ended_at='2024-01-01T17:00:00Z', **extra):
    return {'name': name, 'started_at': started_at, 'ended_at': ended_at, **extra}


class TestPlaceResolution:

    def test_exact_place_reused(self, db_session, user, sample_visit_records):
        office = Place(name='Office Building', latitude=40.7589, longitude=-73.9851, source='manual')
        db_session.add(office)
        db_session.commit()

        created = VisitImporter(db_session, user.id).call(sample_visit_records)

        assert created == 1
        assert place_count(db_session) == 1
        stored = db_session.execute(select(Visit)).scalar_one()
        assert stored.place_id == office.id
        assert stored.status == 'confirmed'
        assert stored.duration == 480

    def test_nearby_place_reused_regardless_of_name(self, db_session, user, sample_visit_records):
        """
        Given: a place named 'Office' a few meters from the referenced coordinates
        When: a visit referencing 'Office Building' is imported
        Then: the existing place is linked and no new place is created
        """
        nearby = Place(name='Office', latitude=40.75895, longitude=-73.98505, source='photon')
        db_session.add(nearby)
        db_session.commit()

        VisitImporter(db_session, user.id).call(sample_visit_records)

        assert place_count(db_session) == 1
        assert db_session.execute(select(Visit.place_id)).scalar_one() == nearby.id

    def test_place_created_when_nothing_matches(self, db_session, user, sample_visit_records):
        db_session.add(Place(name='Far Away', latitude=41.0, longitude=-73.0, source='manual'))
        db_session.commit()

        VisitImporter(db_session, user.id).call(sample_visit_records)

        assert place_count(db_session) == 2
        place = db_session.execute(select(Place).where(Place.name == 'Office Building')).scalar_one()
        assert place.latitude == 40.7589
        assert place.lonlat == 'POINT(-73.9851 40.7589)'
        assert db_session.execute(select(Visit.place_id)).scalar_one() == place.id

    def test_created_place_reused_by_next_visit(self, db_session, user, sample_visit_records):
        second = dict(sample_visit_records[0], name='Office Visit 2', started_at='2024-01-02T09:00:00Z')

        created = VisitImporter(db_session, user.id).call(sample_visit_records + [second])

        assert created == 2
        assert place_count(db_session) == 1

    def test_nil_place_reference(self, db_session, user):
        created = VisitImporter(db_session, user.id).call([visit(place_reference=None)])

        assert created == 1
        assert db_session.execute(select(Visit.place_id)).scalar_one() is None
        assert place_count(db_session) == 0

    def test_incomplete_place_reference(self, db_session, user):
        VisitImporter(db_session, user.id).call([visit(place_reference={'name': 'No Coordinates'})])

        assert db_session.execute(select(Visit.place_id)).scalar_one() is None

    def test_archived_place_id_ignored(self, db_session, user):
        VisitImporter(db_session, user.id).call([visit(place_id=12345, area_id=678)])

        stored = db_session.execute(select(Visit)).scalar_one()
        assert stored.place_id is None
        assert stored.area_id is None


class TestAreaResolution:

    def test_area_reference_resolved_within_user(self, db_session, user, other_user):
        own = Area(user_id=user.id, name='Home', latitude=40.7128, longitude=-74.006, radius=100)
        foreign = Area(user_id=other_user.id, name='Home', latitude=40.7128, longitude=-74.006, radius=100)
        db_session.add_all([foreign, own])
        db_session.commit()

        VisitImporter(db_session, user.id).call([
            visit(area_reference={'name': 'Home', 'latitude': '40.7128', 'longitude': '-74.006'})
        ])

        assert db_session.execute(select(Visit.area_id)).scalar_one() == own.id


class TestVisitDeduplication:

    def test_duplicate_in_same_batch(self, db_session, user):
        importer = VisitImporter(db_session, user.id)

        created = importer.call([
            visit(),
            visit(started_at='2024-01-01T10:00:00+01:00', ended_at='2024-01-01T17:00:00.000Z'),
        ])

        assert created == 1
        assert importer.stats['existing'] == 1

    def test_reimport_creates_nothing(self, db_session, user, sample_visit_records):
        VisitImporter(db_session, user.id).call(sample_visit_records)

        assert VisitImporter(db_session, user.id).call(sample_visit_records) == 0
        assert place_count(db_session) == 1

    def test_same_visit_for_two_users(self, db_session, user, other_user, sample_visit_records):
        VisitImporter(db_session, user.id).call(sample_visit_records)

        created = VisitImporter(db_session, other_user.id).call(sample_visit_records)

        assert created == 1
        place_ids = db_session.execute(select(Visit.place_id)).scalars().all()
        assert len(place_ids) == 2
        assert len(set(place_ids)) == 1

    def test_missing_times_skipped(self, db_session, user):
        reporter = IssueReporter(db_session, user_id=user.id)
        importer = VisitImporter(db_session, user.id, reporter)

        created = importer.call([visit(ended_at=None), visit(started_at='not a time')])

        assert created == 0
        assert reporter.counts['INVALID'] == 2
        assert importer.stats['invalid'] == 2
