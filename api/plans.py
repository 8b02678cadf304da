"""AI wellness plan endpoint.

Plans come from fixed templates keyed by goal; generating one publishes an
`ai_plan` feed entry and grants the plan XP.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.logger import get_logger
from core.repository import transaction
from database.deps import get_db_write
from schemas import PlanRequest, PlanResponse
from services.feed_publisher import feed_publisher
from services.leveling import AI_PLAN_XP, leveling_engine
from services.profile_store import ProfileRepository

logger = get_logger("api.plans")
router = APIRouter(prefix="/api/ai", tags=["plans"])

PLAN_TEMPLATES = {
    "weight_loss": {
        "fitness": [
            "30 minutes cardio 4x/week",
            "Strength training 2x/week",
            "10,000 steps daily",
        ],
        "nutrition": [
            "Caloric deficit of 500 calories/day",
            "High protein intake (1g per lb bodyweight)",
            "Limit processed foods",
        ],
        "skincare": [
            "Drink 8 glasses of water daily",
            "Use gentle cleanser morning and night",
            "Apply moisturizer with SPF",
        ],
    },
    "muscle_gain": {
        "fitness": [
            "Strength training 4x/week",
            "Progressive overload each week",
            "Focus on compound movements",
        ],
        "nutrition": [
            "Caloric surplus of 300-500 calories/day",
            "High protein intake (1.2g per lb bodyweight)",
            "Pre and post workout nutrition",
        ],
        "skincare": [
            "Stay hydrated",
            "Use gentle cleanser after workouts",
            "Apply moisturizer daily",
        ],
    },
}

PLAN_TIPS = [
    "Consistency is key to seeing results",
    "Track your progress weekly",
    "Listen to your body and rest when needed",
]


def build_plan(goal: str) -> dict:
    """Assemble a 4-week plan; unknown goals get the weight_loss template."""
    return {
        "goal": goal,
        "duration": "4 weeks",
        "difficulty": "Intermediate",
        "plan": PLAN_TEMPLATES.get(goal, PLAN_TEMPLATES["weight_loss"]),
        "tips": list(PLAN_TIPS),
    }


@router.post("/generate-plan", response_model=PlanResponse)
def generate_plan(payload: PlanRequest, db: Session = Depends(get_db_write)):
    """Generate a wellness plan for the user's goal and grant plan XP.

    Raises:
        NotFoundError: If the user has no profile.
    """
    plan = build_plan(payload.goal)
    with transaction(db, "publish_ai_plan"):
        ProfileRepository(db).require_profile(payload.user_id)
        feed_publisher.append(db, payload.user_id, "ai_plan", {
            "message": f"New AI wellness plan generated for {payload.goal}!",
            "plan": plan,
        })
    grant = leveling_engine.grant_xp(db, payload.user_id, "ai_plan_generated", AI_PLAN_XP, "ai")
    logger.info("AI plan (%s) generated for %s", payload.goal, payload.user_id)
    return PlanResponse(
        plan=plan,
        xp_gained=grant.xp_gained,
        leveled_up=grant.leveled_up,
        level=grant.new_level,
        total_xp=grant.total_xp,
    )
