"""Schemas for scan submission requests and responses."""

from pydantic import BaseModel, Field
from typing import Optional


class ScanRequest(BaseModel):
    """Payload for submitting a body, face or food scan."""

    user_id: str = Field(..., min_length=1, examples=["5f0c3d2e-8a4b-4c1e-9a7d-2b6e1f3c4d5a"], description="Profile owner")
    image_url: Optional[str] = Field(None, examples=["https://cdn.example.com/scans/abc.jpg"], description="Location of the uploaded image")


class ScanResponse(BaseModel):
    """Result of a completed scan and the XP it earned."""

    success: bool = True
    scan: dict
    xp_gained: int
    leveled_up: bool
    level: int
    total_xp: int
    nutrition: Optional[dict] = None
