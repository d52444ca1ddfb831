"""
Finding sink: stores confirmed blunders in the positions table.
"""

import os
import time
from functools import wraps
from pathlib import Path

from dotenv import load_dotenv

from tactics.classifier import Finding
from tactics.constants import (
    DB_MAX_RETRIES,
    DB_RETRY_BASE_DELAY,
    DB_RETRY_MAX_DELAY,
)

# Load environment variables
load_dotenv(Path(__file__).parent.parent / '.env')

# Check if database is configured (either a full URL or the SQL* variables)
DB_ENABLED = os.getenv('DATABASE_URL') is not None or os.getenv('SQLIP') is not None

# Cache the app instance to avoid recreating it for every DB operation
_app_instance = None


def db_retry(func):
    """Decorator to retry database operations on connection errors with exponential backoff."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        last_error = None
        for attempt in range(DB_MAX_RETRIES):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                last_error = e
                error_str = str(e).lower()
                # Check if it's a connection error worth retrying
                if any(msg in error_str for msg in ['connection', 'closed', 'terminated', 'timeout', 'operationalerror']):
                    if attempt < DB_MAX_RETRIES - 1:
                        # Exponential backoff: 5, 10, 20, 40, 60, 60, 60... (capped at max)
                        wait_time = min(DB_RETRY_BASE_DELAY * (2 ** attempt), DB_RETRY_MAX_DELAY)
                        print(f"Database connection error, retrying in {wait_time}s... (attempt {attempt + 1}/{DB_MAX_RETRIES})")
                        time.sleep(wait_time)
                        # Reset the app instance to force new connection
                        global _app_instance
                        _app_instance = None
                        continue
                # Not a connection error, or out of retries - raise immediately
                raise
        # All retries exhausted
        raise last_error
    return wrapper


def _get_app():
    """Get or create the Flask app instance for DB operations."""
    global _app_instance
    if _app_instance is None and DB_ENABLED:
        from web.app import create_app
        _app_instance = create_app()
    return _app_instance


@db_retry
def _save_finding_impl(finding: Finding) -> int | None:
    """Insert one finding. Returns the new row id, or None if it was already stored."""
    from sqlalchemy.exc import IntegrityError
    from web.database import db
    from web.models import Position

    app = _get_app()
    with app.app_context():
        position = Position(
            fen=finding.fen,
            sm=finding.played_move,
            cp=finding.centipawns,
            dm=finding.mate_distance,
            bm=finding.best_move,
            blunder=finding.severity,
        )
        db.session.add(position)
        try:
            db.session.commit()
        except IntegrityError:
            # Unique (fen, sm): recorded by an earlier run
            db.session.rollback()
            return None
        return position.id


def save_finding(finding: Finding) -> bool:
    """
    Record a confirmed blunder.

    Returns True if a row was inserted, False if the same position and move
    were already recorded. Connection errors are retried with backoff; any
    other database error propagates.
    """
    print(f"Inserting {finding.fen} {finding.played_move} {finding.centipawns} "
          f"{finding.mate_distance} {finding.best_move} {finding.severity} into database")
    position_id = _save_finding_impl(finding)
    if position_id is None:
        return False
    print(f"ID = {position_id}")
    return True
