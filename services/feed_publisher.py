"""Feed publisher: append-only, user-visible notification stream.

`append` stages an entry on the caller's session so it commits or rolls back
with the caller's unit of work (the leveling engine uses this for level_up).
`publish` is the standalone form and runs in its own transaction.
"""

import json
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.exceptions import InvalidArgumentError
from core.logger import get_logger
from core.repository import transaction
from database.models import FEED_TYPES, FeedEntry

logger = get_logger("services.feed_publisher")


def feed_entry_to_dict(entry: FeedEntry) -> Dict[str, Any]:
    """Serialize a FeedEntry with its decoded content."""
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "type": entry.type,
        "content": json.loads(entry.content),
        "created_at": entry.created_at.isoformat(),
    }


class FeedPublisher:
    """Appends and reads FeedEntry rows."""

    def append(self, db: Session, user_id: str, type: str, content: Any) -> FeedEntry:
        """Stage a feed entry in the current transaction.

        Raises:
            InvalidArgumentError: Unknown `type` or content that cannot be
                encoded as JSON.
        """
        if type not in FEED_TYPES:
            raise InvalidArgumentError(f"Unknown feed entry type '{type}'", field="type")
        try:
            encoded = json.dumps(content)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"Feed content is not serializable: {exc}", field="content") from exc

        entry = FeedEntry(user_id=user_id, type=type, content=encoded)
        db.add(entry)
        db.flush()
        return entry

    def publish(self, db: Session, user_id: str, type: str, content: Any) -> FeedEntry:
        """Append one feed entry and commit it."""
        with transaction(db, "publish_feed"):
            entry = self.append(db, user_id, type, content)
        logger.info("Feed entry %s published: user=%s type=%s", entry.id, user_id, type)
        return entry

    def recent(self, db: Session, user_id: str, limit: int = 10) -> List[FeedEntry]:
        """Return the newest `limit` entries for a user, newest first."""
        stmt = (
            select(FeedEntry)
            .where(FeedEntry.user_id == user_id)
            .order_by(FeedEntry.created_at.desc(), FeedEntry.id.desc())
            .limit(limit)
        )
        return list(db.scalars(stmt))


# export singleton
feed_publisher = FeedPublisher()
__all__ = ["FeedPublisher", "feed_publisher", "feed_entry_to_dict"]
