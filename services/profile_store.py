"""Profile store and XP ledger data access.

All write helpers stage work on the caller's session; the caller wraps them
in `core.repository.transaction`. Profile mutations are single UPDATE
statements so the storage engine serializes concurrent writers on the row.
"""

from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from core.logger import get_logger
from core.repository import BaseRepository
from database.models import UserProfile, XpLogEntry

logger = get_logger("services.profile_store")

XP_PER_LEVEL = 100


def required_xp(level: int) -> int:
    """XP total at which a user at `level` advances to the next level."""
    return level * XP_PER_LEVEL


class ProfileRepository(BaseRepository[UserProfile]):
    """Data access for UserProfile rows and their XpLogEntry ledger."""

    def __init__(self, session: Session):
        super().__init__(UserProfile, session)

    def create_profile(self, user_id: str, **attrs) -> UserProfile:
        """Stage a new profile; used by the registration collaborator."""
        attrs.setdefault("xp", 0)
        attrs.setdefault("level", 1)
        return self.add(UserProfile(user_id=user_id, **attrs))

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        stmt = (
            select(UserProfile)
            .where(UserProfile.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return self.session.scalars(stmt).first()

    def require_profile(self, user_id: str) -> UserProfile:
        profile = self.get_profile(user_id)
        if profile is None:
            raise NotFoundError("UserProfile", user_id)
        return profile

    def exists(self, user_id: str) -> bool:
        stmt = select(UserProfile.user_id).where(UserProfile.user_id == user_id)
        return self.session.scalar(stmt) is not None

    def increment_xp(self, user_id: str, amount: int) -> bool:
        """Add `amount` to the stored XP in one statement.

        Returns False when no profile matched. On PostgreSQL this takes the
        row lock, on SQLite the database write lock, both held until commit.
        """
        stmt = (
            update(UserProfile)
            .where(UserProfile.user_id == user_id)
            .values(xp=UserProfile.xp + amount)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def read_progress(self, user_id: str) -> Tuple[int, int]:
        """Return the stored (xp, level), bypassing the identity map."""
        row = self.session.execute(
            select(UserProfile.xp, UserProfile.level).where(UserProfile.user_id == user_id)
        ).one_or_none()
        if row is None:
            raise NotFoundError("UserProfile", user_id)
        return row.xp, row.level

    def advance_level(self, user_id: str, expected_level: int) -> bool:
        """Compare-and-set the level from `expected_level` to the next one.

        The update only applies while the stored level is still
        `expected_level` and the stored XP has reached its threshold, so at
        most one concurrent caller can advance past a given threshold.
        """
        stmt = (
            update(UserProfile)
            .where(
                UserProfile.user_id == user_id,
                UserProfile.level == expected_level,
                UserProfile.xp >= required_xp(expected_level),
            )
            .values(level=UserProfile.level + 1)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def append_xp_log(self, user_id: str, action: str, xp_amount: int, source: str) -> XpLogEntry:
        entry = XpLogEntry(user_id=user_id, action=action, xp_amount=xp_amount, source=source)
        self.session.add(entry)
        self.session.flush()
        return entry

    def list_xp_logs(self, user_id: str, limit: int = 50) -> List[XpLogEntry]:
        stmt = (
            select(XpLogEntry)
            .where(XpLogEntry.user_id == user_id)
            .order_by(XpLogEntry.created_at.desc(), XpLogEntry.id.desc())
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def lifetime_xp(self, user_id: str) -> int:
        """Sum of every ledger grant for the user."""
        stmt = select(func.coalesce(func.sum(XpLogEntry.xp_amount), 0)).where(XpLogEntry.user_id == user_id)
        return int(self.session.scalar(stmt))

    def list_user_ids(self) -> List[str]:
        return list(self.session.scalars(select(UserProfile.user_id).order_by(UserProfile.user_id)))

    def delete_profile(self, user_id: str) -> None:
        """Delete the profile together with every row it owns."""
        profile = self.require_profile(user_id)
        self.session.delete(profile)
        self.session.flush()
        logger.info("Profile %s deleted", user_id)
