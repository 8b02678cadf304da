"""Daily nutrition accumulator.

Keeps one NutritionDay row per (user, calendar day). Each food scan adds
its calories and macros onto that row with a single INSERT ... ON CONFLICT
DO UPDATE statement, so concurrent scans for the same day never lose an
update and the order in which they land does not change the totals.
"""

import math
from datetime import date as date_type
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from core.exceptions import ConfigurationError, InvalidArgumentError, NotFoundError
from core.logger import get_logger
from core.repository import transaction
from database.models import NutritionDay
from services.profile_store import ProfileRepository

logger = get_logger("services.nutrition_accumulator")

MACRO_FIELDS = ("calories", "protein", "carbs", "fat")


def _upsert_dialect(db: Session):
    name = db.get_bind().dialect.name
    if name == "postgresql":
        return postgresql
    if name == "sqlite":
        return sqlite
    raise ConfigurationError(
        f"Atomic nutrition upsert is not available for '{name}'", config_key="DATABASE_URL"
    )


def _coerce_date(value: Union[date_type, str, None]) -> date_type:
    if value is None:
        return date_type.today()
    if isinstance(value, date_type):
        return value
    try:
        return date_type.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"Invalid date '{value}', expected YYYY-MM-DD", field="date") from exc


def _coerce_amount(name: str, value) -> float:
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{name} must be a number", field=name)
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"{name} must be a number", field=name) from exc
    if not math.isfinite(amount):
        raise InvalidArgumentError(f"{name} must be a finite number", field=name)
    if amount < 0:
        raise InvalidArgumentError(f"{name} must not be negative", field=name)
    return amount


def nutrition_day_to_dict(day: NutritionDay) -> dict:
    return {
        "user_id": day.user_id,
        "date": day.date.isoformat(),
        "total_calories": day.total_calories,
        "protein": day.protein,
        "carbs": day.carbs,
        "fat": day.fat,
    }


class NutritionAccumulator:
    """Additive per-day merge of food-scan nutrition."""

    def accumulate(
        self,
        db: Session,
        user_id: str,
        date: Union[date_type, str, None] = None,
        calories: float = 0,
        protein: float = 0,
        carbs: float = 0,
        fat: float = 0,
    ) -> NutritionDay:
        """Add one food scan's nutrition onto the user's totals for `date`.

        `date` defaults to today's server-side date and may be given as an
        ISO string. Returns the row holding the merged totals.

        Raises:
            InvalidArgumentError: A value is negative, not a finite number, or
                the date is malformed.
            NotFoundError: No profile exists for `user_id`.
            ConfigurationError: The database backend has no atomic upsert.
        """
        day = _coerce_date(date)
        values = {
            name: _coerce_amount(name, value)
            for name, value in zip(MACRO_FIELDS, (calories, protein, carbs, fat))
        }

        dialect = _upsert_dialect(db)
        stmt = dialect.insert(NutritionDay).values(
            user_id=user_id,
            date=day,
            total_calories=values["calories"],
            protein=values["protein"],
            carbs=values["carbs"],
            fat=values["fat"],
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "date"],
            set_={
                "total_calories": NutritionDay.total_calories + stmt.excluded.total_calories,
                "protein": NutritionDay.protein + stmt.excluded.protein,
                "carbs": NutritionDay.carbs + stmt.excluded.carbs,
                "fat": NutritionDay.fat + stmt.excluded.fat,
            },
        )

        with transaction(db, "accumulate_nutrition"):
            if not ProfileRepository(db).exists(user_id):
                raise NotFoundError("UserProfile", user_id)
            db.execute(stmt)
            totals = self.get_day(db, user_id, day)

        logger.info(
            "Nutrition merged for %s on %s: +%s kcal -> %s kcal",
            user_id, day, values["calories"], totals.total_calories,
        )
        return totals

    def get_day(self, db: Session, user_id: str, day: Optional[date_type] = None) -> Optional[NutritionDay]:
        """Return the stored totals for one day, or None before the first scan."""
        stmt = (
            select(NutritionDay)
            .where(NutritionDay.user_id == user_id, NutritionDay.date == (day or date_type.today()))
            .execution_options(populate_existing=True)
        )
        return db.scalars(stmt).first()


# export singleton
nutrition_accumulator = NutritionAccumulator()
__all__ = ["NutritionAccumulator", "nutrition_accumulator", "nutrition_day_to_dict"]
