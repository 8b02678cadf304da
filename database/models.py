"""SQLAlchemy ORM models for the LevelUp backend.

Defines the per-user progress aggregate (UserProfile), its append-only XP
ledger and feed, the per-day nutrition accumulator, and the three scan
tables. Every child row belongs to a UserProfile and is removed with it.
Models stay behavior-free; business rules live in `services`.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

FEED_TYPES = ("scan", "level_up", "ai_plan", "weekly_summary")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _owner_fk():
    return Column(
        String(36),
        ForeignKey("user_profiles.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class UserProfile(Base):
    """Cumulative XP and level for one user.

    `user_id` is issued by the external identity service. `xp` is never reset
    on level-up and neither `xp` nor `level` ever decreases.
    """

    __tablename__ = "user_profiles"
    __table_args__ = (
        CheckConstraint("xp >= 0", name="ck_user_profiles_xp_non_negative"),
        CheckConstraint("level >= 1", name="ck_user_profiles_level_positive"),
    )

    user_id = Column(String(36), primary_key=True)
    xp = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    goals = Column(Text, nullable=True)
    age = Column(Integer, nullable=True)
    gender = Column(String(20), nullable=True)
    height_cm = Column(Integer, nullable=True)
    weight_kg = Column(Float, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    xp_logs = relationship("XpLogEntry", back_populates="profile", cascade="all, delete-orphan")
    nutrition_days = relationship("NutritionDay", back_populates="profile", cascade="all, delete-orphan")
    feed_entries = relationship("FeedEntry", back_populates="profile", cascade="all, delete-orphan")
    body_scans = relationship("BodyScan", back_populates="profile", cascade="all, delete-orphan")
    face_scans = relationship("FaceScan", back_populates="profile", cascade="all, delete-orphan")
    food_scans = relationship("FoodScan", back_populates="profile", cascade="all, delete-orphan")


class XpLogEntry(Base):
    """Immutable record of one XP grant; the audit trail for profile XP."""

    __tablename__ = "xp_logs"
    __table_args__ = (
        CheckConstraint("xp_amount > 0", name="ck_xp_logs_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()
    action = Column(String(100), nullable=False)
    xp_amount = Column(Integer, nullable=False)
    source = Column(String(50), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    profile = relationship("UserProfile", back_populates="xp_logs")


class NutritionDay(Base):
    """Calorie and macro totals for one user on one calendar day."""

    __tablename__ = "nutrition_days"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_nutrition_days_user_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()
    date = Column(Date, nullable=False)
    total_calories = Column(Float, nullable=False, default=0)
    protein = Column(Float, nullable=False, default=0)
    carbs = Column(Float, nullable=False, default=0)
    fat = Column(Float, nullable=False, default=0)

    profile = relationship("UserProfile", back_populates="nutrition_days")


class FeedEntry(Base):
    """User-visible notification. `content` is a JSON-encoded string."""

    __tablename__ = "user_feed"

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()
    type = Column(String(50), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    profile = relationship("UserProfile", back_populates="feed_entries")


class BodyScan(Base):
    """Body composition scan result."""

    __tablename__ = "body_scans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()
    image_url = Column(Text, nullable=True)
    body_type = Column(String(50), nullable=True)
    fat_percent = Column(Float, nullable=True)
    muscle_percent = Column(Float, nullable=True)
    ai_result = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    profile = relationship("UserProfile", back_populates="body_scans")


class FaceScan(Base):
    """Skin analysis scan result. `skin_issues` is a JSON-encoded list."""

    __tablename__ = "face_scans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()
    image_url = Column(Text, nullable=True)
    skin_type = Column(String(50), nullable=True)
    skin_issues = Column(Text, nullable=True)
    ai_result = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    profile = relationship("UserProfile", back_populates="face_scans")


class FoodScan(Base):
    """Identified food with per-serving nutrition."""

    __tablename__ = "food_scans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()
    image_url = Column(Text, nullable=True)
    food_name = Column(String(255), nullable=True)
    calories = Column(Float, nullable=True)
    protein = Column(Float, nullable=True)
    carbs = Column(Float, nullable=True)
    fat = Column(Float, nullable=True)
    ai_result = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    profile = relationship("UserProfile", back_populates="food_scans")


SCAN_MODELS = {"body": BodyScan, "face": FaceScan, "food": FoodScan}
