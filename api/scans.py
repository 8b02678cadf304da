"""Scan API router.

Each endpoint analyzes the submitted image, records the scan together with a
`scan` feed entry, then grants the scan XP. Food scans also add their
nutrition onto today's totals. The scan record, the XP grant and the
nutrition merge are separate transactions: a failed merge never undoes a
committed grant, and vice versa.
"""

import json
from datetime import datetime

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from core.logger import get_logger
from core.repository import transaction
from database.deps import get_db_write
from database.models import Base, BodyScan, FaceScan, FoodScan
from schemas import ScanRequest, ScanResponse
from services.feed_publisher import feed_publisher
from services.leveling import SCAN_XP, leveling_engine
from services.nutrition_accumulator import nutrition_accumulator
from services.profile_store import ProfileRepository
from services.scan_analyzer import ScanAnalyzer

logger = get_logger("api.scans")
router = APIRouter(prefix="/api/scan", tags=["scans"])

_JSON_COLUMNS = {"ai_result", "skin_issues"}


def get_scan_analyzer(request: Request) -> ScanAnalyzer:
    """Return the analyzer configured at application start."""
    return request.app.state.scan_analyzer


def scan_to_dict(scan: Base) -> dict:
    """Serialize a scan row, decoding its JSON columns."""
    out = {}
    for column in scan.__table__.columns:
        value = getattr(scan, column.name)
        if column.name in _JSON_COLUMNS and value is not None:
            value = json.loads(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        out[column.name] = value
    return out


def _record_scan(db: Session, scan: Base, kind: str, message: str, data: dict) -> dict:
    """Persist the scan row and its feed entry in one transaction."""
    with transaction(db, f"record_{kind}_scan"):
        ProfileRepository(db).require_profile(scan.user_id)
        db.add(scan)
        db.flush()
        feed_publisher.append(db, scan.user_id, "scan", {
            "type": f"{kind}_scan",
            "message": message,
            "data": data,
        })
    logger.info("%s scan %s recorded for %s", kind.capitalize(), scan.id, scan.user_id)
    return scan_to_dict(scan)


@router.post("/body", response_model=ScanResponse)
def scan_body(
    payload: ScanRequest,
    db: Session = Depends(get_db_write),
    analyzer: ScanAnalyzer = Depends(get_scan_analyzer),
):
    """Analyze a body image, record the scan and grant scan XP.

    Raises:
        NotFoundError: If the user has no profile.
    """
    image_url = payload.image_url or "mock-body-image-url"
    result = analyzer.analyze_body(image_url)
    scan = _record_scan(
        db,
        BodyScan(
            user_id=payload.user_id,
            image_url=image_url,
            body_type=result["body_type"],
            fat_percent=result["fat_percent"],
            muscle_percent=result["muscle_percent"],
            ai_result=json.dumps(result),
        ),
        "body",
        f"New body scan completed! Body type: {result['body_type']}",
        result,
    )
    grant = leveling_engine.grant_xp(db, payload.user_id, "body_scan", SCAN_XP, "scan")
    return ScanResponse(
        scan=scan,
        xp_gained=grant.xp_gained,
        leveled_up=grant.leveled_up,
        level=grant.new_level,
        total_xp=grant.total_xp,
    )


@router.post("/face", response_model=ScanResponse)
def scan_face(
    payload: ScanRequest,
    db: Session = Depends(get_db_write),
    analyzer: ScanAnalyzer = Depends(get_scan_analyzer),
):
    """Analyze a face image, record the scan and grant scan XP."""
    image_url = payload.image_url or "mock-face-image-url"
    result = analyzer.analyze_face(image_url)
    scan = _record_scan(
        db,
        FaceScan(
            user_id=payload.user_id,
            image_url=image_url,
            skin_type=result["skin_type"],
            skin_issues=json.dumps(result["skin_issues"]),
            ai_result=json.dumps(result),
        ),
        "face",
        f"Face scan completed! Skin type: {result['skin_type']}",
        result,
    )
    grant = leveling_engine.grant_xp(db, payload.user_id, "face_scan", SCAN_XP, "scan")
    return ScanResponse(
        scan=scan,
        xp_gained=grant.xp_gained,
        leveled_up=grant.leveled_up,
        level=grant.new_level,
        total_xp=grant.total_xp,
    )


@router.post("/food", response_model=ScanResponse)
def scan_food(
    payload: ScanRequest,
    db: Session = Depends(get_db_write),
    analyzer: ScanAnalyzer = Depends(get_scan_analyzer),
):
    """Identify a food, record the scan, add its nutrition to today and grant XP.

    Returns the scan, the XP outcome and today's accumulated nutrition.
    """
    image_url = payload.image_url or "mock-food-image-url"
    nutrition = analyzer.identify_food(image_url)
    scan = _record_scan(
        db,
        FoodScan(
            user_id=payload.user_id,
            image_url=image_url,
            food_name=nutrition["food_name"],
            calories=nutrition["calories"],
            protein=nutrition["protein"],
            carbs=nutrition["carbs"],
            fat=nutrition["fat"],
            ai_result=json.dumps(nutrition),
        ),
        "food",
        f"Food scanned: {nutrition['food_name']} ({nutrition['calories']} cal)",
        nutrition,
    )
    nutrition_accumulator.accumulate(
        db,
        payload.user_id,
        calories=nutrition["calories"],
        protein=nutrition["protein"],
        carbs=nutrition["carbs"],
        fat=nutrition["fat"],
    )
    grant = leveling_engine.grant_xp(db, payload.user_id, "food_scan", SCAN_XP, "scan")
    return ScanResponse(
        scan=scan,
        xp_gained=grant.xp_gained,
        leveled_up=grant.leveled_up,
        level=grant.new_level,
        total_xp=grant.total_xp,
        nutrition=nutrition,
    )
