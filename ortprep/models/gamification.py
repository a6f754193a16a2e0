"""Gamification models."""

from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, Integer, Float, DateTime, Date, UniqueConstraint, Index
import uuid

from ortprep.core.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class AchievementType(str, Enum):
    """Achievement kinds a learner can unlock once."""
    FIRST_LESSON = "first_lesson"
    FIRST_TEST = "first_test"
    STREAK_3 = "streak_3"
    STREAK_7 = "streak_7"
    STREAK_30 = "streak_30"
    MASTERY_5 = "mastery_5"
    MASTERY_10 = "mastery_10"
    PERFECT_SCORE = "perfect_score"
    EARLY_BIRD = "early_bird"
    NIGHT_OWL = "night_owl"


class MasteryTier(str, Enum):
    """Coarse competence classification for a topic."""
    WEAK = "weak"
    IN_PROGRESS = "in_progress"
    MASTERED = "mastered"


class Profile(Base):
    """Per-user gamification state."""
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)
    name = Column(String)
    avatar_url = Column(String)
    points = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    streak = Column(Integer, nullable=False, default=0)
    last_activity_date = Column(Date)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_profiles_points", "points"),
    )


class UserAchievement(Base):
    """Achievements unlocked by users."""
    __tablename__ = "user_achievements"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    achievement = Column(String, nullable=False)
    points_awarded = Column(Integer, nullable=False, default=0)
    earned_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "achievement", name="uq_user_achievement"),
    )


class UserTopicProgress(Base):
    """Mastery of a topic, overwritten by the latest test on it."""
    __tablename__ = "user_topic_progress"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    topic_id = Column(String(64), nullable=False)
    mastery = Column(String, nullable=False, default=MasteryTier.WEAK.value)
    progress_percentage = Column(Float, default=0.0)
    last_practiced = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "topic_id", name="uq_user_topic"),
        Index("ix_topic_progress_mastery", "user_id", "mastery"),
    )
