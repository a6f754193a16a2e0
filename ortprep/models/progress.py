"""Lesson and test progress models."""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Float, DateTime, Boolean, ForeignKey, UniqueConstraint, Index, JSON
import uuid

from ortprep.core.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Topic(Base):
    """Curriculum topic."""
    __tablename__ = "topics"

    id = Column(String(64), primary_key=True, default=_uuid)
    title = Column(String, nullable=False)
    title_ru = Column(String)


class Lesson(Base):
    """Lesson; content is generated on first view when empty."""
    __tablename__ = "lessons"

    id = Column(String(64), primary_key=True, default=_uuid)
    topic_id = Column(String(64), ForeignKey("topics.id"))
    title = Column(String, nullable=False)
    title_ru = Column(String)
    difficulty_level = Column(Integer, default=1)  # 1-5
    content = Column(JSON)
    is_ai_generated = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class UserLessonProgress(Base):
    """Per-user lesson completion."""
    __tablename__ = "user_lesson_progress"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    lesson_id = Column(String(64), nullable=False)
    completed = Column(Boolean, default=False)
    progress_percentage = Column(Float, default=0.0)
    score = Column(Integer)
    time_spent_seconds = Column(Integer, default=0)
    completed_at = Column(DateTime)

    __table_args__ = (
        UniqueConstraint("user_id", "lesson_id", name="uq_user_lesson"),
        Index("ix_lesson_progress_completed", "user_id", "completed"),
    )


class UserTest(Base):
    """A submitted test attempt."""
    __tablename__ = "user_tests"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    test_id = Column(String(64))
    topic_id = Column(String(64))
    score = Column(Integer, nullable=False)  # percentage
    correct = Column(Integer, nullable=False)
    total = Column(Integer, nullable=False)
    analysis = Column(JSON)
    started_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime)
