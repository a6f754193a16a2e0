"""Points, level, streak and mastery rules."""

from typing import Dict, Any, Optional
from datetime import date, timedelta

from ortprep.core.config import settings
from ortprep.models.gamification import AchievementType, MasteryTier

ACHIEVEMENT_POINTS: Dict[AchievementType, int] = {
    AchievementType.FIRST_LESSON: 50,
    AchievementType.FIRST_TEST: 50,
    AchievementType.STREAK_3: 100,
    AchievementType.STREAK_7: 200,
    AchievementType.STREAK_30: 500,
    AchievementType.MASTERY_5: 150,
    AchievementType.MASTERY_10: 300,
    AchievementType.PERFECT_SCORE: 100,
    AchievementType.EARLY_BIRD: 25,
    AchievementType.NIGHT_OWL: 25,
}
DEFAULT_ACHIEVEMENT_POINTS = 50

STREAK_MILESTONES = (
    {"days": 3, "reward": ACHIEVEMENT_POINTS[AchievementType.STREAK_3]},
    {"days": 7, "reward": ACHIEVEMENT_POINTS[AchievementType.STREAK_7]},
    {"days": 30, "reward": ACHIEVEMENT_POINTS[AchievementType.STREAK_30]},
)


def level_for_points(points: int) -> int:
    """Level is one plus the number of whole POINTS_PER_LEVEL blocks earned."""
    if points < 0:
        raise ValueError("points must be non-negative")
    return points // settings.POINTS_PER_LEVEL + 1


def level_progress(points: int) -> Dict[str, Any]:
    """Progress through the current level."""
    per_level = settings.POINTS_PER_LEVEL
    in_level = points % per_level
    return {
        "level": level_for_points(points),
        "points_in_level": in_level,
        "points_per_level": per_level,
        "points_to_next_level": per_level - in_level,
        "progress_percentage": round(in_level / per_level * 100, 1),
    }


def next_streak(streak: int, last_activity: Optional[date], today: date) -> int:
    """Streak after a qualifying action on ``today``."""
    if last_activity == today:
        return streak
    if last_activity == today - timedelta(days=1):
        return streak + 1
    return 1


def next_streak_milestone(streak: int) -> Optional[Dict[str, int]]:
    """First milestone not yet reached, with days remaining."""
    for milestone in STREAK_MILESTONES:
        if milestone["days"] > streak:
            return {**milestone, "days_remaining": milestone["days"] - streak}
    return None


def mastery_for_score(score: float) -> MasteryTier:
    """Map a percentage score onto a mastery tier."""
    if score >= settings.MASTERY_MASTERED_SCORE:
        return MasteryTier.MASTERED
    if score >= settings.MASTERY_IN_PROGRESS_SCORE:
        return MasteryTier.IN_PROGRESS
    return MasteryTier.WEAK


def achievement_points(kind) -> int:
    try:
        return ACHIEVEMENT_POINTS[AchievementType(kind)]
    except ValueError:
        return DEFAULT_ACHIEVEMENT_POINTS


def points_for_test(correct: int) -> int:
    """Points earned for a submitted test."""
    return max(correct, 0) * settings.POINTS_TEST_CORRECT_ANSWER

