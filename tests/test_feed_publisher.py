"""Tests for feed publishing and reads."""
import json
from datetime import datetime

import pytest

from core.exceptions import InvalidArgumentError
from core.repository import transaction
from database.models import FeedEntry
from services.feed_publisher import feed_entry_to_dict, feed_publisher


def test_publish_persists_entry(db, make_profile):
    user_id = make_profile()

    entry = feed_publisher.publish(db, user_id, "scan", {"type": "body_scan", "message": "done"})

    assert entry.id is not None
    stored = db.get(FeedEntry, entry.id)
    assert stored.type == "scan"
    assert json.loads(stored.content) == {"type": "body_scan", "message": "done"}


def test_recent_is_newest_first(db, make_profile):
    user_id = make_profile()
    with transaction(db):
        for day in (1, 3, 2):
            db.add(FeedEntry(
                user_id=user_id,
                type="scan",
                content=json.dumps({"day": day}),
                created_at=datetime(2024, 1, day, 9, 0),
            ))

    entries = feed_publisher.recent(db, user_id, limit=2)

    assert [json.loads(e.content)["day"] for e in entries] == [3, 2]


def test_unknown_type_rejected(db, make_profile):
    user_id = make_profile()
    with pytest.raises(InvalidArgumentError) as exc_info:
        feed_publisher.publish(db, user_id, "achievement", {})
    assert exc_info.value.details == {"field": "type"}


def test_unserializable_content_rejected(db, make_profile):
    user_id = make_profile()
    with pytest.raises(InvalidArgumentError):
        feed_publisher.publish(db, user_id, "scan", {"when": object()})
    assert feed_publisher.recent(db, user_id) == []


def test_entry_to_dict_decodes_content(db, make_profile):
    user_id = make_profile()
    entry = feed_publisher.publish(db, user_id, "weekly_summary", {"stats": {"totalScans": 2}})

    out = feed_entry_to_dict(entry)

    assert out["content"] == {"stats": {"totalScans": 2}}
    assert out["type"] == "weekly_summary"
    assert out["user_id"] == user_id
