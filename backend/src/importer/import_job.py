"""
User Data Importer - Import Job
Runs one archive import end to end: per-user lock, run record, notifications.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from database.repositories.import_run_repository import ImportRunRepository
from importer.exceptions import ImportDataError, ImportInProgressError
from importer.statistics import ImportStatistics
from importer.user_data_importer import UserDataImporter
from models.orm_import_run import ImportRun
from models.orm_notification import Notification
from models.orm_user import User
from utils.config import IMPORT_LOCK_TIMEOUT_MINUTES
from utils.logger import log_import_complete, log_import_error, log_import_start

logger = logging.getLogger(__name__)

SUCCESS_TITLE = 'Data import completed'
FAILURE_TITLE = 'Data import failed'


@dataclass
class ImportJobResult:
    """Outcome of a successful import job."""
    run_id: str
    statistics: ImportStatistics


def acquire_import_lock(
    session: Session,
    user_id: int,
    archive_path: str,
    lock_timeout_minutes: int
) -> ImportRun:
    """
    Register a new run for a user, refusing if one is already running.

    The user row is locked (SELECT ... FOR UPDATE) while in-progress runs
    are checked, so two workers cannot both pass the check. Runs whose
    heartbeat is older than the timeout are considered abandoned and
    marked failed.

    Args:
        session: SQLAlchemy session
        user_id: Target user
        archive_path: Archive being imported
        lock_timeout_minutes: Heartbeat age after which a run is abandoned

    Returns:
        Started ImportRun (flushed, not committed)

    Raises:
        ImportDataError: If the user does not exist
        ImportInProgressError: If a live run exists for the user
    """
    user = session.execute(
        select(User).where(User.id == user_id).with_for_update()
    ).scalar_one_or_none()
    if user is None:
        raise ImportDataError(f"User {user_id} not found")

    repo = ImportRunRepository(session)
    for active in repo.get_active_for_user(user_id):
        if not active.is_stale(lock_timeout_minutes):
            raise ImportInProgressError(
                f"Import {active.run_id} is already in progress for user {user_id}"
            )
        logger.warning(f"Failing abandoned import run {active.run_id} (phase: {active.current_phase})")
        repo.fail_run(active, f"Abandoned: no progress for {lock_timeout_minutes} minutes")

    run = repo.create(user_id, archive_path)
    repo.start_run(run)
    return run


def create_notification(session: Session, user_id: int, title: str, content: str, kind: str) -> Notification:
    notification = Notification(user_id=user_id, title=title, content=content, kind=kind)
    session.add(notification)
    session.flush()
    return notification


def run_user_data_import(
    session: Session,
    user_id: int,
    archive_path: str,
    lock_timeout_minutes: Optional[int] = None,
    **importer_options
) -> ImportJobResult:
    """
    Import an archive for a user and notify them of the outcome.

    On success one ``info`` notification summarizing the created counts is
    written; on failure the run is marked failed, one ``error`` notification
    carrying the error message is written and the exception is re-raised.
    A refused lock writes no notification.

    Args:
        session: SQLAlchemy session
        user_id: Target user
        archive_path: Path to the export .zip
        lock_timeout_minutes: Override IMPORT_LOCK_TIMEOUT_MINUTES
        **importer_options: Passed to UserDataImporter (batch_size, file_storage, scratch_root)

    Returns:
        ImportJobResult

    Raises:
        ImportInProgressError: If another import for the user is running
        ImportDataError: On fatal archive problems
    """
    timeout = lock_timeout_minutes or IMPORT_LOCK_TIMEOUT_MINUTES
    repo = ImportRunRepository(session)

    try:
        run = acquire_import_lock(session, user_id, archive_path, timeout)
        session.commit()
    except Exception:
        session.rollback()
        raise

    run_id = run.run_id
    log_import_start(user_id, archive_path, run_id)
    started = time.monotonic()

    importer = UserDataImporter(
        session,
        user_id,
        run_id=run_id,
        on_phase=lambda phase: repo.enter_phase(run, phase),
        **importer_options
    )

    try:
        stats = importer.call(archive_path)
    except Exception as e:
        session.rollback()
        log_import_error(e, user_id=user_id, run_id=run_id)
        run.archive_format = importer.archive_format
        repo.fail_run(run, str(e))
        create_notification(
            session,
            user_id,
            FAILURE_TITLE,
            f"Your data import failed with error: {e}. Please check the archive format and try again.",
            'error'
        )
        session.commit()
        raise

    run.archive_format = importer.archive_format
    repo.complete_run(run, stats.to_dict())
    create_notification(
        session,
        user_id,
        SUCCESS_TITLE,
        f"Your data has been imported successfully ({stats.summary()}).",
        'info'
    )
    session.commit()

    log_import_complete(user_id, round(time.monotonic() - started, 2), stats.created_counts(), run_id)
    return ImportJobResult(run_id=run_id, statistics=stats)
