"""Tests for level, streak and mastery rules."""

from datetime import date

import pytest

from ortprep.gamification.points_engine import (
    achievement_points, level_for_points, level_progress, mastery_for_score,
    next_streak, next_streak_milestone, points_for_test
)
from ortprep.models.gamification import AchievementType, MasteryTier


class TestLevels:

    @pytest.mark.parametrize("points,level", [
        (0, 1), (1, 1), (499, 1), (500, 2), (510, 2), (999, 2), (1000, 3), (12345, 25),
    ])
    def test_level_formula(self, points, level):
        assert level_for_points(points) == level

    def test_level_never_decreases_as_points_grow(self):
        levels = [level_for_points(p) for p in range(0, 5001, 7)]
        assert levels == sorted(levels)

    def test_negative_points_rejected(self):
        with pytest.raises(ValueError):
            level_for_points(-1)

    def test_level_progress(self):
        info = level_progress(510)
        assert info["level"] == 2
        assert info["points_in_level"] == 10
        assert info["points_to_next_level"] == 490
        assert info["progress_percentage"] == 2.0


class TestStreak:
    today = date(2024, 1, 2)

    def test_yesterday_extends(self):
        assert next_streak(2, date(2024, 1, 1), self.today) == 3

    def test_today_unchanged(self):
        assert next_streak(5, self.today, self.today) == 5

    def test_gap_resets(self):
        assert next_streak(9, date(2023, 12, 30), self.today) == 1

    def test_never_active_starts_at_one(self):
        assert next_streak(0, None, self.today) == 1

    def test_month_boundary(self):
        assert next_streak(4, date(2024, 2, 29), date(2024, 3, 1)) == 5

    def test_next_milestone(self):
        assert next_streak_milestone(0) == {"days": 3, "reward": 100, "days_remaining": 3}
        assert next_streak_milestone(3)["days"] == 7
        assert next_streak_milestone(29)["days_remaining"] == 1
        assert next_streak_milestone(30) is None


@pytest.mark.parametrize("score,tier", [
    (0, MasteryTier.WEAK),
    (49, MasteryTier.WEAK),
    (49.9, MasteryTier.WEAK),
    (50, MasteryTier.IN_PROGRESS),
    (79, MasteryTier.IN_PROGRESS),
    (80, MasteryTier.MASTERED),
    (100, MasteryTier.MASTERED),
])
def test_mastery_boundaries(score, tier):
    assert mastery_for_score(score) == tier


def test_achievement_point_values():
    assert achievement_points(AchievementType.FIRST_LESSON) == 50
    assert achievement_points(AchievementType.STREAK_7) == 200
    assert achievement_points(AchievementType.STREAK_30) == 500
    assert achievement_points("night_owl") == 25
    assert achievement_points("unknown_kind") == 50


def test_points_for_test():
    assert points_for_test(7) == 70
    assert points_for_test(0) == 0
