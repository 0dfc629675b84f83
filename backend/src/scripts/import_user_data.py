#!/usr/bin/env python3
"""
Location History - User Data Import CLI
Restores a user's data from an export archive.

Usage:
    # Import an archive for a user
    python -m scripts.import_user_data --user-id 42 --archive /path/to/export.zip

    # Check status of a run
    python -m scripts.import_user_data --status run_abc123def456

    # List a user's recent runs
    python -m scripts.import_user_data --list-runs --user-id 42

    # Create missing tables first (local development)
    python -m scripts.import_user_data --create-schema --user-id 42 --archive export.zip
"""

import argparse
import sys
from pathlib import Path

# Add src to path
backend_src = Path(__file__).parent.parent
sys.path.insert(0, str(backend_src.absolute()))

from utils.logger import logger
from database.connection import db, get_db_session
from database.repositories.import_issue_repository import ImportIssueRepository
from database.repositories.import_run_repository import ImportRunRepository
from importer import ImportDataError, run_user_data_import
from importer.statistics import ENTITY_KINDS


def check_status(run_id: str, session) -> int:
    """Print the state of one import run."""
    run = ImportRunRepository(session).get_by_run_id(run_id)

    if not run:
        print(f"Import run not found: {run_id}")
        return 1

    print(f"\n{'='*60}")
    print(f"Run ID:        {run.run_id}")
    print(f"User:          {run.user_id}")
    print(f"Archive:       {run.archive_path}")
    print(f"Format:        {run.archive_format or '-'}")
    print(f"Status:        {run.status}")
    print(f"Phase:         {run.current_phase or '-'}")
    print(f"Started:       {run.started_at}")
    print(f"Completed:     {run.completed_at}")
    if run.error_message:
        print(f"Error:         {run.error_message}")
    print(f"{'='*60}")

    if run.statistics:
        print_statistics(run.statistics)

    issues = ImportIssueRepository(session).count_by_type(run.run_id)
    if issues:
        print("\nIssues:")
        for issue_type, count in issues.items():
            print(f"  {issue_type}: {count}")
    return 0


def list_runs(user_id: int, session) -> int:
    """List a user's most recent runs."""
    runs = ImportRunRepository(session).list_for_user(user_id)

    if not runs:
        print(f"No import runs found for user {user_id}.")
        return 0

    print(f"\nImport runs for user {user_id} ({len(runs)}):\n")
    print(f"{'Run ID':<22} {'Status':<12} {'Format':<7} {'Started':<20}")
    print("-" * 64)
    for run in runs:
        started = run.started_at.strftime('%Y-%m-%d %H:%M:%S') if run.started_at else '-'
        print(f"{run.run_id:<22} {run.status:<12} {run.archive_format or '-':<7} {started:<20}")
    return 0


def print_statistics(statistics: dict) -> None:
    print("\nCreated:")
    for kind in ENTITY_KINDS:
        count = statistics.get(f"{kind}_created", 0)
        if count:
            print(f"  {kind:<20} {count:>12,}")
    print(f"  {'files restored':<20} {statistics.get('files_restored', 0):>12,}")
    print(f"  {'points skipped':<20} {statistics.get('points_skipped', 0):>12,}")
    print(f"  settings updated:    {'yes' if statistics.get('settings_updated') else 'no'}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Import a user's data from an export archive"
    )

    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        '--archive',
        type=str,
        help='Path to the export .zip to import'
    )
    group.add_argument(
        '--status',
        type=str,
        help='Check status of an import by run_id'
    )
    group.add_argument(
        '--list-runs',
        action='store_true',
        help="List the user's recent import runs"
    )

    parser.add_argument(
        '--user-id',
        type=int,
        help='Target user id'
    )
    parser.add_argument(
        '--batch-size',
        type=int,
        default=None,
        help='Records per batch (default: IMPORT_BATCH_SIZE)'
    )
    parser.add_argument(
        '--create-schema',
        action='store_true',
        help='Create missing tables before importing'
    )

    args = parser.parse_args()

    if not db.test_connection():
        print("Database is not reachable; check DATABASE_URL or the DB_* settings")
        return 1

    if args.create_schema:
        db.create_schema()
        print("Schema created")

    if args.status:
        with get_db_session() as session:
            return check_status(args.status, session)

    if args.user_id is None:
        parser.error('--user-id is required')

    if args.list_runs:
        with get_db_session() as session:
            return list_runs(args.user_id, session)

    if not args.archive:
        if args.create_schema:
            return 0
        parser.error('one of --archive, --status or --list-runs is required')

    print(f"\nImporting {args.archive} for user {args.user_id}\n")

    try:
        with get_db_session() as session:
            result = run_user_data_import(
                session,
                args.user_id,
                args.archive,
                batch_size=args.batch_size
            )
    except ImportDataError as e:
        logger.error(f"Import failed: {e}")
        print(f"\nImport failed: {e}")
        return 1

    print(f"\n{'='*60}")
    print(f"Import Complete: {result.run_id}")
    print(f"{'='*60}")
    print_statistics(result.statistics.to_dict())
    return 0


if __name__ == '__main__':
    sys.exit(main())
