"""Tests for XP grants and level progression."""
import json

import pytest
from sqlalchemy import func, select

from core.exceptions import InvalidArgumentError, NotFoundError
from database.models import FeedEntry, XpLogEntry
from services.leveling import leveling_engine
from services.profile_store import ProfileRepository, required_xp


def _level_up_entries(db, user_id):
    stmt = select(FeedEntry).where(FeedEntry.user_id == user_id, FeedEntry.type == "level_up")
    return list(db.scalars(stmt))


def _ledger_count(db, user_id):
    return db.scalar(select(func.count()).select_from(XpLogEntry).where(XpLogEntry.user_id == user_id))


def test_required_xp_scales_with_level():
    assert required_xp(1) == 100
    assert required_xp(2) == 200
    assert required_xp(7) == 700


def test_grant_adds_xp_and_one_ledger_entry(db, make_profile):
    user_id = make_profile(xp=20)

    result = leveling_engine.grant_xp(db, user_id, "body_scan", 10, "scan")

    assert result.total_xp == 30
    assert result.new_level == 1
    assert result.leveled_up is False
    assert result.xp_gained == 10
    logs = ProfileRepository(db).list_xp_logs(user_id)
    assert len(logs) == 1
    assert (logs[0].action, logs[0].xp_amount, logs[0].source) == ("body_scan", 10, "scan")
    assert _level_up_entries(db, user_id) == []


def test_crossing_threshold_levels_up_once_and_publishes(db, make_profile):
    user_id = make_profile(xp=95)

    result = leveling_engine.grant_xp(db, user_id, "food_scan", 10, "scan")

    assert result.leveled_up is True
    assert result.new_level == 2
    assert result.total_xp == 105
    entries = _level_up_entries(db, user_id)
    assert len(entries) == 1
    content = json.loads(entries[0].content)
    assert content["newLevel"] == 2
    assert content["xpGained"] == 10


def test_reaching_threshold_exactly_levels_up(db, make_profile):
    user_id = make_profile(xp=80)
    result = leveling_engine.grant_xp(db, user_id, "ai_plan_generated", 20, "ai")
    assert result.leveled_up is True
    assert result.new_level == 2


def test_xp_is_not_reset_on_level_up(db, make_profile):
    user_id = make_profile(xp=90)
    leveling_engine.grant_xp(db, user_id, "body_scan", 10, "scan")
    result = leveling_engine.grant_xp(db, user_id, "body_scan", 10, "scan")

    assert result.total_xp == 110
    assert result.new_level == 2
    assert result.leveled_up is False


def test_large_grant_advances_only_one_level(db, make_profile):
    user_id = make_profile()

    result = leveling_engine.grant_xp(db, user_id, "bonus", 1000, "scan")

    assert result.new_level == 2
    assert result.total_xp == 1000
    assert len(_level_up_entries(db, user_id)) == 1

    # Each later grant catches up by one more level
    follow_up = leveling_engine.grant_xp(db, user_id, "body_scan", 10, "scan")
    assert follow_up.leveled_up is True
    assert follow_up.new_level == 3


@pytest.mark.parametrize("amount", [0, -5, 2.5, "10", True])
def test_invalid_amount_rejected_without_writes(db, make_profile, amount):
    user_id = make_profile(xp=40)

    with pytest.raises(InvalidArgumentError) as exc_info:
        leveling_engine.grant_xp(db, user_id, "x", amount, "scan")

    assert exc_info.value.status_code == 400
    assert exc_info.value.details == {"field": "xp_amount"}
    assert ProfileRepository(db).read_progress(user_id) == (40, 1)
    assert _ledger_count(db, user_id) == 0


def test_unknown_user_raises_not_found_and_writes_nothing(db):
    with pytest.raises(NotFoundError) as exc_info:
        leveling_engine.grant_xp(db, "nonexistent-user", "x", 10, "scan")

    assert exc_info.value.status_code == 404
    assert _ledger_count(db, "nonexistent-user") == 0
    assert db.scalar(select(func.count()).select_from(FeedEntry)) == 0


def test_ledger_reconciles_with_profile_xp(db, make_profile):
    user_id = make_profile()
    for amount in (10, 10, 20, 10, 60):
        leveling_engine.grant_xp(db, user_id, "mixed", amount, "scan")

    profiles = ProfileRepository(db)
    xp, level = profiles.read_progress(user_id)
    assert xp == 110
    assert profiles.lifetime_xp(user_id) == xp
    assert level == 2


def test_failed_feed_insert_rolls_back_whole_grant(db, make_profile, monkeypatch):
    from services import leveling

    user_id = make_profile(xp=95)

    def broken_append(*args, **kwargs):
        raise RuntimeError("feed unavailable")

    monkeypatch.setattr(leveling.feed_publisher, "append", broken_append)

    with pytest.raises(RuntimeError):
        leveling_engine.grant_xp(db, user_id, "body_scan", 10, "scan")

    assert ProfileRepository(db).read_progress(user_id) == (95, 1)
    assert _ledger_count(db, user_id) == 0


@pytest.mark.parametrize("amount,message", [
    (2.5, "xp_amount must be an integer"),
    (True, "xp_amount must be an integer"),
    (0, "xp_amount must be positive"),
    (-5, "xp_amount must be positive"),
])
def test_invalid_amount_messages(db, make_profile, amount, message):
    user_id = make_profile()

    with pytest.raises(InvalidArgumentError) as exc_info:
        leveling_engine.grant_xp(db, user_id, "x", amount, "scan")

    assert exc_info.value.message == message
