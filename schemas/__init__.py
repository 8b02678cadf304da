"""Pydantic schema package for request and response models."""

from .scan_schema import ScanRequest, ScanResponse
from .progress_schema import (
    DashboardResponse,
    FeedEntryResponse,
    FeedResponse,
    NutritionDayResponse,
    PlanRequest,
    PlanResponse,
    ProfileProgress,
)

__all__ = [
    "ScanRequest",
    "ScanResponse",
    "DashboardResponse",
    "FeedEntryResponse",
    "FeedResponse",
    "NutritionDayResponse",
    "PlanRequest",
    "PlanResponse",
    "ProfileProgress",
]
