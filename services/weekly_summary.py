"""Weekly progress summary batch job.

For every user, counts body, face and food scans in the trailing seven days
and publishes a `weekly_summary` feed entry when the user scanned at least
once. Each user is processed in its own session and transaction; a failure
for one user is logged and the loop moves on.

The job does not schedule itself. An external scheduler runs it, e.g.:

    0 9 * * 1  python -m services.weekly_summary
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.logger import get_logger
from database import Database
from database.models import SCAN_MODELS, utcnow
from services.feed_publisher import feed_publisher
from services.profile_store import ProfileRepository

logger = get_logger("services.weekly_summary")

WINDOW = timedelta(days=7)


@dataclass
class WeeklySummaryReport:
    """Outcome of one batch pass."""

    processed: int = 0
    published: int = 0
    failed: List[str] = field(default_factory=list)


def count_recent_scans(db: Session, user_id: str, since: datetime) -> Dict[str, int]:
    """Count a user's scans of each kind created at or after `since`."""
    stats = {}
    for kind, model in SCAN_MODELS.items():
        stmt = (
            select(func.count())
            .select_from(model)
            .where(model.user_id == user_id, model.created_at >= since)
        )
        stats[f"{kind}Scans"] = db.scalar(stmt)
    stats["totalScans"] = sum(stats.values())
    return stats


def summarize_user(db: Session, user_id: str, since: datetime) -> bool:
    """Publish the summary for one user. Returns True if an entry was written."""
    stats = count_recent_scans(db, user_id, since)
    if stats["totalScans"] == 0:
        return False
    feed_publisher.publish(db, user_id, "weekly_summary", {
        "message": f"Week in review: {stats['totalScans']} total scans completed!",
        "stats": stats,
    })
    return True


def run_weekly_summary(database: Database, now: Optional[datetime] = None) -> WeeklySummaryReport:
    """Run one summary pass over all users.

    Args:
        database: Storage handle to open per-user sessions from.
        now: End of the window (naive UTC); defaults to the current time.

    Returns:
        `WeeklySummaryReport` with counts and the ids of users that failed.
    """
    since = (now or utcnow()) - WINDOW
    report = WeeklySummaryReport()
    logger.info("Running weekly progress summary since %s", since.isoformat())

    with database.session_scope(read_only=True) as db:
        user_ids = ProfileRepository(db).list_user_ids()

    for user_id in user_ids:
        report.processed += 1
        try:
            with database.session_scope() as db:
                if summarize_user(db, user_id, since):
                    report.published += 1
        except Exception:
            logger.exception("Weekly summary failed for user %s", user_id)
            report.failed.append(user_id)

    logger.info(
        "Weekly summary done: processed=%s published=%s failed=%s",
        report.processed, report.published, len(report.failed),
    )
    return report


def main(argv=None) -> int:
    import argparse

    from core.config import settings

    p = argparse.ArgumentParser("Publish weekly scan summaries to user feeds")
    p.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    args = p.parse_args(argv)

    if args.database_url:
        database = Database(args.database_url, timeout=settings.DB_TIMEOUT)
    else:
        database = Database.from_settings(settings)
    try:
        database.init_db()
        report = run_weekly_summary(database)
    finally:
        database.close()
    return 1 if report.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
