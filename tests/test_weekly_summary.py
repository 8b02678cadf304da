"""Tests for the weekly summary batch job."""
import json
from datetime import datetime, timedelta

from core.exceptions import StorageError
from core.repository import transaction
from database.models import BodyScan, FaceScan, FeedEntry, FoodScan
from services import weekly_summary
from services.weekly_summary import count_recent_scans, run_weekly_summary

NOW = datetime(2024, 6, 10, 9, 0)


def _add_scans(database, user_id, *scans):
    with database.session_scope() as session:
        with transaction(session):
            for model, days_ago in scans:
                session.add(model(user_id=user_id, created_at=NOW - timedelta(days=days_ago)))


def _summaries(database, user_id):
    with database.session_scope() as session:
        entries = session.query(FeedEntry).filter(
            FeedEntry.user_id == user_id, FeedEntry.type == "weekly_summary"
        ).all()
        return [json.loads(e.content) for e in entries]


def test_counts_only_trailing_seven_days(database, make_profile):
    user_id = make_profile()
    _add_scans(database, user_id, (BodyScan, 1), (FaceScan, 3), (FoodScan, 6), (FoodScan, 10))

    with database.session_scope() as session:
        stats = count_recent_scans(session, user_id, NOW - timedelta(days=7))

    assert stats == {"bodyScans": 1, "faceScans": 1, "foodScans": 1, "totalScans": 3}


def test_publishes_summary_for_active_user_only(database, make_profile):
    active = make_profile()
    idle = make_profile()
    _add_scans(database, active, (BodyScan, 1), (BodyScan, 2), (FoodScan, 5))
    _add_scans(database, idle, (FaceScan, 20))

    report = run_weekly_summary(database, now=NOW)

    assert report.processed == 2
    assert report.published == 1
    assert report.failed == []
    summaries = _summaries(database, active)
    assert len(summaries) == 1
    assert summaries[0]["stats"]["totalScans"] == 3
    assert summaries[0]["stats"]["bodyScans"] == 2
    assert "3 total scans" in summaries[0]["message"]
    assert _summaries(database, idle) == []


def test_one_user_failure_does_not_stop_the_batch(database, make_profile, monkeypatch):
    first = make_profile()
    second = make_profile()
    third = make_profile()
    for user_id in (first, second, third):
        _add_scans(database, user_id, (FoodScan, 1))

    real_publish = weekly_summary.feed_publisher.publish

    def flaky_publish(db, user_id, type, content):
        if user_id == second:
            raise StorageError("connection lost", operation="publish_feed")
        return real_publish(db, user_id, type, content)

    monkeypatch.setattr(weekly_summary.feed_publisher, "publish", flaky_publish)

    report = run_weekly_summary(database, now=NOW)

    assert report.processed == 3
    assert report.published == 2
    assert report.failed == [second]
    assert len(_summaries(database, first)) == 1
    assert _summaries(database, second) == []
    assert len(_summaries(database, third)) == 1


def test_empty_database_is_a_no_op(database):
    report = run_weekly_summary(database, now=NOW)
    assert (report.processed, report.published, report.failed) == (0, 0, [])


def test_unexpected_error_for_one_user_is_isolated(database, make_profile, monkeypatch):
    first = make_profile()
    second = make_profile()
    for user_id in (first, second):
        _add_scans(database, user_id, (BodyScan, 2))

    real_summarize = weekly_summary.summarize_user

    def broken_summarize(db, user_id, since):
        if user_id == first:
            raise ValueError("bad row")
        return real_summarize(db, user_id, since)

    monkeypatch.setattr(weekly_summary, "summarize_user", broken_summarize)

    report = run_weekly_summary(database, now=NOW)

    assert report.processed == 2
    assert report.published == 1
    assert report.failed == [first]
    assert len(_summaries(database, second)) == 1
