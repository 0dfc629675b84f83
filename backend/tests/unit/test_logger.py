"""
Location History Import - Logger Unit Tests

Tests structured JSON logging functionality:
- Logger setup and configuration
- Import logging (start, complete, error, phase)
- Database error logging

The global logger does not propagate to the root logger, so records are
captured with a handler attached directly to it instead of caplog.
"""

import json
import logging
from io import StringIO

import pytest
from pythonjsonlogger import jsonlogger

from utils.logger import (
    setup_logger,
    logger,
    log_import_start,
    log_import_complete,
    log_import_error,
    log_phase_complete,
    log_database_error
)


class ListHandler(logging.Handler):

    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    handler = ListHandler()
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    yield handler.records
    logger.removeHandler(handler)
    logger.setLevel(previous_level)


class TestSetupLogger:
    """Test logger setup and configuration."""

    def test_setup_logger_returns_logger_instance(self):
        test_logger = setup_logger("test_logger")

        assert isinstance(test_logger, logging.Logger)
        assert test_logger.name == "test_logger"
        assert test_logger.propagate is False

    def test_setup_logger_prevents_duplicate_handlers(self):
        test_logger = setup_logger("test_duplicate")
        handler_count_1 = len(test_logger.handlers)

        test_logger = setup_logger("test_duplicate")
        handler_count_2 = len(test_logger.handlers)

        assert handler_count_1 == handler_count_2

    def test_global_logger_exists(self):
        assert isinstance(logger, logging.Logger)
        assert logger.name == "location_history"

    def test_handler_emits_json(self):
        """Extra fields end up as top-level JSON keys for Logs Insights."""
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(jsonlogger.JsonFormatter('%(asctime)s %(name)s %(levelname)s %(message)s'))
        test_logger = setup_logger("test_json_output")
        test_logger.addHandler(handler)
        try:
            test_logger.warning("Points skipped", extra={"skipped": 3})
        finally:
            test_logger.removeHandler(handler)

        payload = json.loads(stream.getvalue().strip())
        assert payload['message'] == "Points skipped"
        assert payload['skipped'] == 3
        assert payload['levelname'] == "WARNING"


class TestImportLogging:
    """Test import lifecycle logging functions."""

    def test_log_import_start(self, captured):
        log_import_start(user_id=42, archive_path='/tmp/export.zip', run_id='run_abc')

        record = captured[-1]
        assert record.getMessage() == "User data import started"
        assert record.event_type == "import_start"
        assert record.user_id == 42
        assert record.archive_path == '/tmp/export.zip'
        assert record.run_id == 'run_abc'

    def test_log_import_complete_includes_counts(self, captured):
        log_import_complete(user_id=42, duration_seconds=12.5,
                            counts={'points_created': 1000, 'visits_created': 4})

        record = captured[-1]
        assert record.levelname == "INFO"
        assert record.event_type == "import_complete"
        assert record.points_created == 1000
        assert record.visits_created == 4
        assert record.duration_seconds == 12.5

    def test_log_import_error(self, captured):
        try:
            raise ValueError("broken archive")
        except ValueError as e:
            log_import_error(e, user_id=42, run_id='run_abc')

        record = captured[-1]
        assert record.levelname == "ERROR"
        assert record.error_type == "ValueError"
        assert record.error_message == "broken archive"
        assert record.exc_info is not None

    def test_log_phase_complete(self, captured):
        log_phase_complete('visits', records_created=4, duration_seconds=0.2)

        record = captured[-1]
        assert record.event_type == "import_phase_complete"
        assert record.phase == 'visits'
        assert record.records_created == 4


class TestDatabaseErrorLogging:

    def test_log_database_error(self, captured):
        try:
            raise RuntimeError("connection lost")
        except RuntimeError as e:
            log_database_error(e, query_context="insert points")

        record = captured[-1]
        assert record.levelname == "ERROR"
        assert record.event_type == "database_error"
        assert record.query_context == "insert points"
