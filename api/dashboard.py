"""Dashboard and feed API router.

Read-only views over a user's progress: XP and level, today's nutrition,
recent scans and the notification feed.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from api.scans import scan_to_dict
from core.logger import get_logger
from database.deps import get_db_read
from database.models import SCAN_MODELS
from schemas import DashboardResponse, FeedEntryResponse, FeedResponse, NutritionDayResponse, ProfileProgress
from services.feed_publisher import feed_entry_to_dict, feed_publisher
from services.nutrition_accumulator import nutrition_accumulator, nutrition_day_to_dict
from services.profile_store import ProfileRepository, required_xp

logger = get_logger("api.dashboard")
router = APIRouter(prefix="/api", tags=["dashboard"])


@router.get("/dashboard/{user_id}", response_model=DashboardResponse)
def get_dashboard(user_id: str, db: Session = Depends(get_db_read)):
    """Return the user's progress, today's nutrition, recent scans and feed.

    Raises:
        NotFoundError: If the user has no profile.
    """
    profile = ProfileRepository(db).require_profile(user_id)
    today = nutrition_accumulator.get_day(db, user_id)

    recent_scans = {}
    for kind, model in SCAN_MODELS.items():
        stmt = (
            select(model)
            .where(model.user_id == user_id)
            .order_by(model.created_at.desc(), model.id.desc())
            .limit(5)
        )
        recent_scans[kind] = [scan_to_dict(s) for s in db.scalars(stmt)]

    feed = [FeedEntryResponse(**feed_entry_to_dict(e)) for e in feed_publisher.recent(db, user_id, limit=10)]

    return DashboardResponse(
        profile=ProfileProgress(
            user_id=profile.user_id,
            xp=profile.xp,
            level=profile.level,
            xp_to_next_level=max(0, required_xp(profile.level) - profile.xp),
            goals=profile.goals,
        ),
        today_nutrition=NutritionDayResponse(**nutrition_day_to_dict(today)) if today else None,
        recent_scans=recent_scans,
        feed=feed,
    )


@router.get("/feed/{user_id}", response_model=FeedResponse)
def get_feed(user_id: str, limit: int = Query(20, ge=1, le=100), db: Session = Depends(get_db_read)):
    """Return the user's feed, newest first."""
    ProfileRepository(db).require_profile(user_id)
    entries = feed_publisher.recent(db, user_id, limit=limit)
    return FeedResponse(
        user_id=user_id,
        entries=[FeedEntryResponse(**feed_entry_to_dict(e)) for e in entries],
    )
