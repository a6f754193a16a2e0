"""Tests for achievement conditions and awarding."""

import pytest
from sqlalchemy import select

from ortprep.gamification.achievement_engine import AchievementEngine, evaluate_conditions, mastery_kinds
from ortprep.models.gamification import AchievementType, Profile, UserAchievement

NOON = 12


def test_no_conditions_at_noon_without_streak():
    assert evaluate_conditions(streak=1, hour=NOON) == []


@pytest.mark.parametrize("streak,expected", [
    (2, []),
    (3, [AchievementType.STREAK_3]),
    (7, [AchievementType.STREAK_3, AchievementType.STREAK_7]),
    (45, [AchievementType.STREAK_3, AchievementType.STREAK_7, AchievementType.STREAK_30]),
])
def test_streak_conditions(streak, expected):
    assert evaluate_conditions(streak=streak, hour=NOON) == expected


@pytest.mark.parametrize("hour,early,night", [
    (4, False, False), (5, True, False), (7, True, False), (8, False, False),
    (21, False, False), (22, False, True), (0, False, True), (2, False, True), (3, False, False),
])
def test_time_windows(hour, early, night):
    kinds = evaluate_conditions(streak=1, hour=hour)
    assert (AchievementType.EARLY_BIRD in kinds) is early
    assert (AchievementType.NIGHT_OWL in kinds) is night


def test_first_lesson_only_on_first_completion():
    assert AchievementType.FIRST_LESSON in evaluate_conditions(
        streak=1, hour=NOON, lesson_completed=True, completed_lessons=1
    )
    assert AchievementType.FIRST_LESSON not in evaluate_conditions(
        streak=1, hour=NOON, lesson_completed=True, completed_lessons=2
    )


def test_test_conditions():
    kinds = evaluate_conditions(streak=1, hour=NOON, test_score=100, completed_tests=1)
    assert kinds == [AchievementType.FIRST_TEST, AchievementType.PERFECT_SCORE]
    assert evaluate_conditions(streak=1, hour=NOON, test_score=99, completed_tests=3) == []


def test_mastery_kinds():
    assert mastery_kinds(4) == []
    assert mastery_kinds(5) == [AchievementType.MASTERY_5]
    assert mastery_kinds(10) == [AchievementType.MASTERY_5, AchievementType.MASTERY_10]


@pytest.mark.asyncio
async def test_award_is_idempotent(db_session, make_profile):
    await make_profile("user-1", points=400)
    engine = AchievementEngine(db_session)

    first = await engine.award("user-1", AchievementType.STREAK_3)
    second = await engine.award("user-1", AchievementType.STREAK_3)

    assert first == {"achievement": "streak_3", "points_awarded": 100, "total_points": 500, "level": 2}
    assert second is None

    rows = (await db_session.execute(select(UserAchievement))).scalars().all()
    assert len(rows) == 1
    points = (await db_session.execute(select(Profile.points).where(Profile.id == "user-1"))).scalar_one()
    assert points == 500


@pytest.mark.asyncio
async def test_award_all_accumulates_points(db_session, make_profile):
    await make_profile("user-1", points=0)
    engine = AchievementEngine(db_session)

    awarded = await engine.award_all("user-1", [AchievementType.STREAK_3, AchievementType.EARLY_BIRD])

    assert [a["achievement"] for a in awarded] == ["streak_3", "early_bird"]
    assert awarded[-1]["total_points"] == 125


class _NoRow:
    def scalar_one_or_none(self):
        return None


@pytest.mark.asyncio
async def test_award_losing_insert_race_adds_no_points(db_session, make_profile, monkeypatch):
    await make_profile("user-1", points=0)
    db_session.add(UserAchievement(user_id="user-1", achievement="streak_3", points_awarded=100))
    await db_session.commit()

    # The existence check misses the row, as when another update inserts it concurrently
    real_execute = db_session.execute
    checked = []

    async def execute(statement, *args, **kwargs):
        if not checked:
            checked.append(statement)
            return _NoRow()
        return await real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db_session, "execute", execute)

    assert await AchievementEngine(db_session).award("user-1", AchievementType.STREAK_3) is None

    monkeypatch.undo()
    rows = (await db_session.execute(select(UserAchievement))).scalars().all()
    assert len(rows) == 1
    points = (await db_session.execute(select(Profile.points).where(Profile.id == "user-1"))).scalar_one()
    assert points == 0
