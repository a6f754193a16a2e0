"""Gamification ledger: streak, points, level, achievements and topic mastery."""

from typing import Any, Callable, Dict, List, Optional
from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_
import structlog

from ortprep.gamification.achievement_engine import AchievementEngine, evaluate_conditions, mastery_kinds
from ortprep.gamification.events import EventBus, GamificationEventType
from ortprep.gamification.points_engine import level_for_points, mastery_for_score, next_streak, STREAK_MILESTONES
from ortprep.models.gamification import Profile, UserTopicProgress, MasteryTier

logger = structlog.get_logger()

MILESTONE_DAYS = {m["days"] for m in STREAK_MILESTONES}


class LedgerResult(BaseModel):
    """Outcome of one ledger update.

    ``points`` and ``level`` are the values written with the streak;
    ``total_points`` and ``final_level`` include achievement awards.
    """
    streak: int
    points: int
    level: int
    level_up: bool = False
    achievements: List[Dict[str, Any]] = Field(default_factory=list)
    achievement_points: int = 0
    total_points: int
    final_level: int
    mastery: Optional[MasteryTier] = None


class GamificationLedger:
    """Applies a learning action to a user's profile.

    Every store call commits on its own. A failure part way through leaves
    the steps already committed in place.
    """

    def __init__(
        self,
        db: AsyncSession,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.db = db
        self.event_bus = event_bus
        self.clock = clock
        self.achievements = AchievementEngine(db)

    async def update(
        self,
        user_id: str,
        points_earned: int = 0,
        test_score: Optional[float] = None,
        lesson_completed: bool = False,
        topic_id: Optional[str] = None
    ) -> Optional[LedgerResult]:
        """Record an action; returns None when the user has no profile."""
        if points_earned < 0:
            raise ValueError("points_earned must be non-negative")

        try:
            # Profile rows are written with bulk updates, so refresh any cached instance
            result = await self.db.execute(
                select(Profile)
                .where(Profile.id == user_id)
                .execution_options(populate_existing=True)
            )
            profile = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Failed to load profile", user_id=user_id, error=str(e))
            raise

        if profile is None:
            logger.info("No profile for gamification update", user_id=user_id)
            return None

        now = self.clock()
        today = now.date()
        old_streak = profile.streak or 0
        old_level = profile.level or 1

        new_streak = next_streak(old_streak, profile.last_activity_date, today)
        new_points = (profile.points or 0) + points_earned
        new_level = level_for_points(new_points)

        await self._save_profile(user_id, new_points, new_streak, new_level, today)

        # Achievements
        completed_lessons = None
        completed_tests = None
        if lesson_completed:
            completed_lessons = await self.achievements.count_completed_lessons(user_id)
        if test_score is not None:
            completed_tests = await self.achievements.count_completed_tests(user_id)

        kinds = evaluate_conditions(
            streak=new_streak,
            hour=now.hour,
            test_score=test_score,
            lesson_completed=lesson_completed,
            completed_lessons=completed_lessons,
            completed_tests=completed_tests
        )
        awarded = await self.achievements.award_all(user_id, kinds)

        # Topic mastery
        mastery = None
        if topic_id and test_score is not None:
            mastery = await self._upsert_mastery(user_id, topic_id, test_score, now)
            mastered = await self.achievements.count_mastered_topics(user_id)
            awarded += await self.achievements.award_all(user_id, mastery_kinds(mastered))

        bonus = sum(a["points_awarded"] for a in awarded)
        final_level = awarded[-1]["level"] if awarded else new_level
        total_points = awarded[-1]["total_points"] if awarded else new_points

        ledger_result = LedgerResult(
            streak=new_streak,
            points=new_points,
            level=new_level,
            level_up=final_level > old_level,
            achievements=awarded,
            achievement_points=bonus,
            total_points=total_points,
            final_level=final_level,
            mastery=mastery
        )

        logger.info(
            "Gamification updated",
            user_id=user_id,
            points_earned=points_earned,
            streak=new_streak,
            total_points=total_points,
            level=final_level,
            achievements=[a["achievement"] for a in awarded]
        )

        if self.event_bus is not None:
            self._publish(user_id, ledger_result, points_earned, old_streak, test_score, lesson_completed)

        return ledger_result

    async def _save_profile(self, user_id: str, points: int, streak: int, level: int, today):
        try:
            await self.db.execute(
                update(Profile)
                .where(Profile.id == user_id)
                .values(
                    points=points,
                    streak=streak,
                    level=level,
                    last_activity_date=today
                )
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except Exception as e:
            logger.error("Failed to update profile", user_id=user_id, error=str(e))
            await self.db.rollback()
            raise

    async def _upsert_mastery(self, user_id: str, topic_id: str, score: float, now: datetime) -> MasteryTier:
        mastery = mastery_for_score(score)
        try:
            result = await self.db.execute(
                select(UserTopicProgress).where(
                    and_(
                        UserTopicProgress.user_id == user_id,
                        UserTopicProgress.topic_id == topic_id
                    )
                )
            )
            progress = result.scalar_one_or_none()

            if progress is None:
                progress = UserTopicProgress(user_id=user_id, topic_id=topic_id)
                self.db.add(progress)

            progress.mastery = mastery.value
            progress.progress_percentage = score
            progress.last_practiced = now
            await self.db.commit()
        except Exception as e:
            logger.error("Failed to update topic mastery", user_id=user_id, topic_id=topic_id, error=str(e))
            await self.db.rollback()
            raise

        return mastery

    def _publish(
        self,
        user_id: str,
        result: LedgerResult,
        points_earned: int,
        old_streak: int,
        test_score: Optional[float],
        lesson_completed: bool
    ):
        bus = self.event_bus
        if lesson_completed:
            bus.publish(user_id, GamificationEventType.LESSON_COMPLETED, value=points_earned)
        if test_score is not None:
            bus.publish(user_id, GamificationEventType.TEST_COMPLETED, value=test_score)
            if test_score == 100:
                bus.publish(user_id, GamificationEventType.PERFECT_SCORE, value=test_score)
        if points_earned > 0:
            bus.publish(user_id, GamificationEventType.POINTS_EARNED, value=points_earned)
        if result.streak != old_streak and result.streak in MILESTONE_DAYS:
            bus.publish(user_id, GamificationEventType.STREAK_MILESTONE, value=result.streak)
        for award in result.achievements:
            bus.publish(
                user_id,
                GamificationEventType.ACHIEVEMENT_UNLOCKED,
                value=award["points_awarded"],
                description=award["achievement"]
            )
        if result.level_up:
            bus.publish(user_id, GamificationEventType.LEVEL_UP, value=result.final_level)
