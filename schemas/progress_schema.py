"""Schemas for progress, feed, dashboard and AI plan payloads."""

from pydantic import BaseModel, Field
from typing import List, Optional


class FeedEntryResponse(BaseModel):
    """A single feed entry with its decoded content."""

    id: int
    user_id: str
    type: str
    content: dict
    created_at: str


class FeedResponse(BaseModel):
    user_id: str
    entries: List[FeedEntryResponse]


class NutritionDayResponse(BaseModel):
    """Accumulated totals for one user and day."""

    user_id: str
    date: str
    total_calories: float
    protein: float
    carbs: float
    fat: float


class ProfileProgress(BaseModel):
    user_id: str
    xp: int
    level: int
    xp_to_next_level: int
    goals: Optional[str] = None


class DashboardResponse(BaseModel):
    """Everything the home screen shows for a user."""

    success: bool = True
    profile: ProfileProgress
    today_nutrition: Optional[NutritionDayResponse] = None
    recent_scans: dict
    feed: List[FeedEntryResponse]


class PlanRequest(BaseModel):
    """Payload for requesting an AI wellness plan."""

    user_id: str = Field(..., min_length=1, description="Profile owner")
    goal: str = Field("weight_loss", examples=["muscle_gain"], description="Goal: weight_loss or muscle_gain")


class PlanResponse(BaseModel):
    success: bool = True
    plan: dict
    xp_gained: int
    leveled_up: bool
    level: int
    total_xp: int
