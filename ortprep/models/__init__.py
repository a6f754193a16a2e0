"""Data models for the ORT Prep service."""

from ortprep.models.gamification import (
    AchievementType, MasteryTier, Profile, UserAchievement, UserTopicProgress
)
from ortprep.models.progress import Topic, Lesson, UserLessonProgress, UserTest

__all__ = [
    "AchievementType",
    "MasteryTier",
    "Profile",
    "UserAchievement",
    "UserTopicProgress",
    "Topic",
    "Lesson",
    "UserLessonProgress",
    "UserTest"
]
