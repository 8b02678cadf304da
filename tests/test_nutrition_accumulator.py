"""Tests for the additive daily nutrition merge."""
from datetime import date

import pytest
from sqlalchemy import func, select

from core.exceptions import ConfigurationError, InvalidArgumentError, NotFoundError
from database.models import NutritionDay
from services.nutrition_accumulator import _upsert_dialect, nutrition_accumulator, nutrition_day_to_dict


def _totals(day):
    return (day.total_calories, day.protein, day.carbs, day.fat)


def test_first_scan_creates_row(db, make_profile):
    user_id = make_profile()

    day = nutrition_accumulator.accumulate(db, user_id, "2024-01-01", 100, 5, 15, 3)

    assert day.date == date(2024, 1, 1)
    assert _totals(day) == (100, 5, 15, 3)


def test_same_day_scans_are_added_not_overwritten(db, make_profile):
    user_id = make_profile()

    nutrition_accumulator.accumulate(db, user_id, "2024-01-01", 100, 5, 15, 3)
    day = nutrition_accumulator.accumulate(db, user_id, "2024-01-01", 50, 2, 5, 1)

    assert _totals(day) == (150, 7, 20, 4)
    rows = db.scalar(select(func.count()).select_from(NutritionDay).where(NutritionDay.user_id == user_id))
    assert rows == 1


def test_merge_order_does_not_matter(db, make_profile):
    first, second = make_profile(), make_profile()

    nutrition_accumulator.accumulate(db, first, "2024-01-01", 100, 5, 15, 3)
    a = nutrition_accumulator.accumulate(db, first, "2024-01-01", 50, 2, 5, 1)
    nutrition_accumulator.accumulate(db, second, "2024-01-01", 50, 2, 5, 1)
    b = nutrition_accumulator.accumulate(db, second, "2024-01-01", 100, 5, 15, 3)

    assert _totals(a) == _totals(b) == (150, 7, 20, 4)


def test_different_days_are_separate_rows(db, make_profile):
    user_id = make_profile()

    nutrition_accumulator.accumulate(db, user_id, date(2024, 1, 1), calories=200)
    day2 = nutrition_accumulator.accumulate(db, user_id, date(2024, 1, 2), calories=75)

    assert day2.total_calories == 75
    assert nutrition_accumulator.get_day(db, user_id, date(2024, 1, 1)).total_calories == 200


def test_date_defaults_to_today(db, make_profile):
    user_id = make_profile()

    day = nutrition_accumulator.accumulate(db, user_id, calories=120, protein=4, carbs=10, fat=2)

    assert day.date == date.today()
    assert nutrition_day_to_dict(nutrition_accumulator.get_day(db, user_id)) == {
        "user_id": user_id,
        "date": date.today().isoformat(),
        "total_calories": 120,
        "protein": 4,
        "carbs": 10,
        "fat": 2,
    }


@pytest.mark.parametrize("field,kwargs", [
    ("calories", {"calories": -1}),
    ("protein", {"protein": -0.5}),
    ("carbs", {"carbs": -10}),
    ("fat", {"fat": -3}),
    ("calories", {"calories": float("nan")}),
    ("protein", {"protein": float("inf")}),
    ("carbs", {"carbs": float("-inf")}),
    ("fat", {"fat": True}),
])
def test_negative_or_non_finite_values_rejected(db, make_profile, field, kwargs):
    user_id = make_profile()

    with pytest.raises(InvalidArgumentError) as exc_info:
        nutrition_accumulator.accumulate(db, user_id, "2024-01-01", **kwargs)

    assert exc_info.value.details == {"field": field}
    assert nutrition_accumulator.get_day(db, user_id, date(2024, 1, 1)) is None


def test_malformed_date_rejected(db, make_profile):
    user_id = make_profile()
    with pytest.raises(InvalidArgumentError):
        nutrition_accumulator.accumulate(db, user_id, "01/02/2024", calories=10)


def test_unknown_user_raises_not_found(db):
    with pytest.raises(NotFoundError):
        nutrition_accumulator.accumulate(db, "ghost", "2024-01-01", 100, 5, 15, 3)
    assert db.scalar(select(func.count()).select_from(NutritionDay)) == 0


def test_unsupported_backend_is_a_configuration_error():
    class _Dialect:
        name = "mysql"

    class _Bind:
        dialect = _Dialect()

    class _Session:
        def get_bind(self):
            return _Bind()

    with pytest.raises(ConfigurationError) as exc_info:
        _upsert_dialect(_Session())

    assert exc_info.value.details == {"config_key": "DATABASE_URL"}
