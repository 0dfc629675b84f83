"""
Unit Tests: ImportRun Model
Tests run lifecycle transitions and stale lock detection.
"""

from datetime import datetime

from freezegun import freeze_time

from models.orm_import_run import ImportRun


def new_run():
    return ImportRun(run_id=ImportRun.generate_run_id(), user_id=1, archive_path='/tmp/export.zip')


class TestLifecycle:

    def test_run_id_format(self):
        run_id = ImportRun.generate_run_id()

        assert run_id.startswith('run_')
        assert len(run_id) == 20

    @freeze_time("2024-06-01 12:00:00")
    def test_start_sets_heartbeat(self):
        run = new_run()
        run.start()

        assert run.status == 'IN_PROGRESS'
        assert run.started_at == datetime(2024, 6, 1, 12, 0, 0)
        assert run.heartbeat_at == run.started_at
        assert run.is_active is True

    def test_enter_phase_refreshes_heartbeat(self):
        run = new_run()
        with freeze_time("2024-06-01 12:00:00"):
            run.start()
        with freeze_time("2024-06-01 12:05:00"):
            run.enter_phase('points')

        assert run.current_phase == 'points'
        assert run.heartbeat_at == datetime(2024, 6, 1, 12, 5, 0)

    def test_complete(self):
        run = new_run()
        run.start()
        run.enter_phase('points')
        run.complete({'points_created': 3})

        assert run.status == 'COMPLETED'
        assert run.statistics == {'points_created': 3}
        assert run.current_phase is None
        assert run.completed_at is not None
        assert run.is_active is False

    def test_fail_keeps_phase(self):
        run = new_run()
        run.start()
        run.enter_phase('visits')
        run.fail('disk full')

        assert run.status == 'FAILED'
        assert run.error_message == 'disk full'
        assert run.current_phase == 'visits'


class TestStaleness:

    def test_recent_heartbeat_is_not_stale(self):
        run = new_run()
        with freeze_time("2024-06-01 12:00:00"):
            run.start()
        with freeze_time("2024-06-01 12:59:00"):
            assert run.is_stale(60) is False

    def test_old_heartbeat_is_stale(self):
        run = new_run()
        with freeze_time("2024-06-01 12:00:00"):
            run.start()
        with freeze_time("2024-06-01 13:01:00"):
            assert run.is_stale(60) is True

    def test_run_without_timestamps_is_stale(self):
        assert new_run().is_stale(60) is True
