"""Achievement evaluation and awarding engine."""

from typing import Dict, Any, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, update, and_, func
import structlog

from ortprep.core.config import settings
from ortprep.gamification.points_engine import achievement_points
from ortprep.models.gamification import AchievementType, MasteryTier, Profile, UserAchievement, UserTopicProgress
from ortprep.models.progress import UserLessonProgress, UserTest

logger = structlog.get_logger()


def is_early_bird(hour: int) -> bool:
    return settings.EARLY_BIRD_START_HOUR <= hour <= settings.EARLY_BIRD_END_HOUR


def is_night_owl(hour: int) -> bool:
    # The window wraps past midnight
    return hour >= settings.NIGHT_OWL_START_HOUR or hour <= settings.NIGHT_OWL_END_HOUR


def evaluate_conditions(
    streak: int,
    hour: int,
    test_score: Optional[float] = None,
    lesson_completed: bool = False,
    completed_lessons: Optional[int] = None,
    completed_tests: Optional[int] = None
) -> List[AchievementType]:
    """Achievement kinds satisfied by the state just computed by the ledger."""
    satisfied = []

    if lesson_completed and completed_lessons == 1:
        satisfied.append(AchievementType.FIRST_LESSON)

    if test_score is not None:
        if completed_tests == 1:
            satisfied.append(AchievementType.FIRST_TEST)
        if test_score == 100:
            satisfied.append(AchievementType.PERFECT_SCORE)

    if streak >= 3:
        satisfied.append(AchievementType.STREAK_3)
    if streak >= 7:
        satisfied.append(AchievementType.STREAK_7)
    if streak >= 30:
        satisfied.append(AchievementType.STREAK_30)

    if is_early_bird(hour):
        satisfied.append(AchievementType.EARLY_BIRD)
    if is_night_owl(hour):
        satisfied.append(AchievementType.NIGHT_OWL)

    return satisfied


def mastery_kinds(mastered_count: int) -> List[AchievementType]:
    kinds = []
    if mastered_count >= 5:
        kinds.append(AchievementType.MASTERY_5)
    if mastered_count >= 10:
        kinds.append(AchievementType.MASTERY_10)
    return kinds


class AchievementEngine:
    """Engine for checking and awarding achievements."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def count_completed_lessons(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count(UserLessonProgress.id)).where(
                and_(
                    UserLessonProgress.user_id == user_id,
                    UserLessonProgress.completed == True  # noqa: E712
                )
            )
        )
        return result.scalar_one()

    async def count_completed_tests(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count(UserTest.id)).where(
                and_(
                    UserTest.user_id == user_id,
                    UserTest.completed_at.is_not(None)
                )
            )
        )
        return result.scalar_one()

    async def count_mastered_topics(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count(UserTopicProgress.id)).where(
                and_(
                    UserTopicProgress.user_id == user_id,
                    UserTopicProgress.mastery == MasteryTier.MASTERED.value
                )
            )
        )
        return result.scalar_one()

    async def award_all(self, user_id: str, kinds: List[AchievementType]) -> List[Dict[str, Any]]:
        """Award each kind in order; a failure leaves earlier awards in place."""
        awarded = []
        for kind in kinds:
            award = await self.award(user_id, kind)
            if award:
                awarded.append(award)
        return awarded

    async def award(self, user_id: str, kind: AchievementType) -> Optional[Dict[str, Any]]:
        """Award an achievement if the user does not hold it yet.

        Returns None when it is already held. Points are added to the
        profile only after the achievement row is committed.
        """
        result = await self.db.execute(
            select(UserAchievement.id).where(
                and_(
                    UserAchievement.user_id == user_id,
                    UserAchievement.achievement == kind.value
                )
            )
        )
        if result.scalar_one_or_none() is not None:
            return None

        points = achievement_points(kind)
        self.db.add(UserAchievement(
            user_id=user_id,
            achievement=kind.value,
            points_awarded=points
        ))

        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent update inserted it first
            await self.db.rollback()
            logger.info("Achievement already held", user_id=user_id, achievement=kind.value)
            return None
        except Exception as e:
            logger.error("Failed to insert achievement", user_id=user_id, achievement=kind.value, error=str(e))
            await self.db.rollback()
            raise

        total_points, level = await self._add_points(user_id, points)

        logger.info(
            "Achievement awarded",
            user_id=user_id,
            achievement=kind.value,
            points=points,
            total_points=total_points
        )

        return {
            "achievement": kind.value,
            "points_awarded": points,
            "total_points": total_points,
            "level": level
        }

    async def _add_points(self, user_id: str, points: int):
        """Atomically increment the profile's points and re-derive its level."""
        new_points = Profile.points + points
        try:
            result = await self.db.execute(
                update(Profile)
                .where(Profile.id == user_id)
                .values(
                    points=new_points,
                    level=new_points // settings.POINTS_PER_LEVEL + 1
                )
                .returning(Profile.points, Profile.level)
                .execution_options(synchronize_session=False)
            )
            row = result.one()
            await self.db.commit()
        except Exception as e:
            logger.error("Failed to add achievement points", user_id=user_id, error=str(e))
            await self.db.rollback()
            raise
        return row.points, row.level
