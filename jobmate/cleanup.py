"""
Cleanup module for removing stale jobs.

Stale jobs are those created more than a given number of days ago
(default: 30). Their stored matches go with them.
"""

from pathlib import Path
from typing import Tuple

from sqlalchemy.exc import SQLAlchemyError

from .logger import get_logger
from .storage import delete_stale_jobs


def cleanup_stale_jobs(db_path: Path, days: int = 30) -> Tuple[int, int]:
    """
    Remove jobs older than the specified number of days.

    Args:
        db_path: Path to the SQLite database
        days: Number of days to keep jobs (default: 30)

    Returns:
        Tuple of (total_jobs_before, total_jobs_after)
        Difference = jobs_removed
    """
    logger = get_logger()
    db_path = Path(db_path)
    if not db_path.exists():
        logger.warning("Database not found, nothing to clean", db_path=str(db_path))
        return (0, 0)

    try:
        jobs_before, jobs_after = delete_stale_jobs(days=days, db_path=db_path)
    except (SQLAlchemyError, ValueError) as e:
        logger.record_error(type(e).__name__)
        logger.error(f"Cleanup failed: {e}", error=str(e), days=days)
        return (0, 0)

    jobs_removed = jobs_before - jobs_after
    logger.info(
        f"Cleanup complete: {jobs_removed} removed, {jobs_after} remaining",
        jobs_before=jobs_before,
        jobs_removed=jobs_removed,
        jobs_after=jobs_after,
        days_threshold=days,
    )
    return (jobs_before, jobs_after)
