"""Leveling engine: XP grants and level progression.

A grant increments the profile's cumulative XP, records the grant in the
XP ledger and, when the post-increment XP reaches `level * 100`, advances
the level by exactly one and publishes a `level_up` feed entry. All of it
commits or rolls back as one transaction.

The XP counter is never reset on level-up. A grant that overshoots several
thresholds still advances only one level; later grants catch up one level
at a time.
"""

from dataclasses import asdict, dataclass

from sqlalchemy.orm import Session

from core.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from core.logger import get_logger
from core.repository import transaction
from services.feed_publisher import feed_publisher
from services.profile_store import ProfileRepository, required_xp

logger = get_logger("services.leveling")

# XP amounts granted by the scan and plan producers
SCAN_XP = 10
AI_PLAN_XP = 20


@dataclass(frozen=True)
class GrantResult:
    """Outcome of one XP grant."""

    leveled_up: bool
    new_level: int
    total_xp: int
    xp_gained: int

    def to_dict(self) -> dict:
        return asdict(self)


class LevelingEngine:
    """Applies XP grants to user profiles."""

    def grant_xp(
        self,
        db: Session,
        user_id: str,
        action: str,
        xp_amount: int,
        source: str = "scan",
    ) -> GrantResult:
        """Grant `xp_amount` XP to a user and apply any resulting level-up.

        Args:
            db: Session used for the grant transaction.
            user_id: Profile owner.
            action: Category label recorded in the ledger (e.g. 'body_scan').
            xp_amount: Positive number of XP to add.
            source: Origin tag ('scan', 'ai').

        Returns:
            `GrantResult` with the post-grant level and XP.

        Raises:
            InvalidArgumentError: `xp_amount` is not a positive integer.
            NotFoundError: No profile exists for `user_id`.
            ConflictError: The level could not be advanced atomically.
            StorageError: The transaction failed to commit.
        """
        if isinstance(xp_amount, bool) or not isinstance(xp_amount, int):
            raise InvalidArgumentError("xp_amount must be an integer", field="xp_amount")
        if xp_amount <= 0:
            raise InvalidArgumentError("xp_amount must be positive", field="xp_amount")

        profiles = ProfileRepository(db)
        with transaction(db, "grant_xp"):
            # The increment goes first so the row is locked before it is read.
            if not profiles.increment_xp(user_id, xp_amount):
                raise NotFoundError("UserProfile", user_id)
            profiles.append_xp_log(user_id, action, xp_amount, source)

            xp, level = profiles.read_progress(user_id)
            leveled_up = xp >= required_xp(level)
            if leveled_up:
                if not profiles.advance_level(user_id, level):
                    raise ConflictError(
                        f"Level of user {user_id} changed during grant", resource="UserProfile"
                    )
                level += 1
                feed_publisher.append(db, user_id, "level_up", {
                    "message": f"Congratulations! You reached level {level}!",
                    "newLevel": level,
                    "xpGained": xp_amount,
                })

        logger.info(
            "Granted %s XP to %s for %s (%s): xp=%s level=%s",
            xp_amount, user_id, action, source, xp, level,
        )
        if leveled_up:
            logger.info("User %s reached level %s", user_id, level)
        return GrantResult(leveled_up=leveled_up, new_level=level, total_xp=xp, xp_gained=xp_amount)


# export singleton
leveling_engine = LevelingEngine()
__all__ = ["LevelingEngine", "leveling_engine", "GrantResult", "SCAN_XP", "AI_PLAN_XP"]
