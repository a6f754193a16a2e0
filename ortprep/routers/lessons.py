"""Lesson viewing and completion endpoints."""

from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
import structlog

from ortprep.ai import service
from ortprep.ai.client import AIError, AIGatewayClient
from ortprep.core.config import settings
from ortprep.core.database import get_db
from ortprep.core.dependencies import get_ai_client, get_current_user, get_event_bus
from ortprep.gamification.events import EventBus
from ortprep.gamification.ledger import GamificationLedger
from ortprep.models.progress import Lesson, UserLessonProgress
from ortprep.routers.ai import ai_http_error
from ortprep.schemas.gamification import LedgerResponse
from ortprep.schemas.progress import LessonComplete, LessonCompletion, LessonResponse

logger = structlog.get_logger()
router = APIRouter()


async def _get_lesson(db: AsyncSession, lesson_id: str) -> Lesson:
    result = await db.execute(select(Lesson).where(Lesson.id == lesson_id))
    lesson = result.scalar_one_or_none()
    if lesson is None:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return lesson


@router.get("/{lesson_id}", response_model=LessonResponse)
async def get_lesson(
    lesson_id: str,
    language: str = Query(settings.AI_DEFAULT_LANGUAGE, pattern="^(ru|kg|en)$"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: AIGatewayClient = Depends(get_ai_client)
):
    """Return a lesson, generating and storing its content on first view."""
    lesson = await _get_lesson(db, lesson_id)
    if lesson.content:
        return lesson

    try:
        content = await service.generate_lesson(
            client,
            topic=lesson.title_ru or lesson.title,
            level=lesson.difficulty_level or 1,
            language=language
        )
    except AIError as e:
        logger.error("Lesson content generation failed", lesson_id=lesson_id, error=e.message)
        raise ai_http_error(e)

    lesson.content = content
    lesson.is_ai_generated = True
    try:
        await db.commit()
    except Exception as e:
        logger.error("Failed to save generated lesson", lesson_id=lesson_id, error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to save lesson content")

    return lesson


@router.post("/{lesson_id}/complete", response_model=LessonCompletion)
async def complete_lesson(
    lesson_id: str,
    request: LessonComplete,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    event_bus: EventBus = Depends(get_event_bus)
):
    """Score the lesson quiz, mark the lesson completed and award points."""
    user_id = current_user["user_id"]
    lesson = await _get_lesson(db, lesson_id)

    quiz = (lesson.content or {}).get("quiz") or []
    correct = sum(
        1 for idx, question in enumerate(quiz)
        if idx < len(request.quiz_answers) and request.quiz_answers[idx] == question.get("correctOption")
    )
    total = len(quiz) or 1
    score = round(correct / total * 100)

    result = await db.execute(
        select(UserLessonProgress).where(
            and_(
                UserLessonProgress.user_id == user_id,
                UserLessonProgress.lesson_id == lesson_id
            )
        )
    )
    progress = result.scalar_one_or_none()
    if progress is None:
        progress = UserLessonProgress(user_id=user_id, lesson_id=lesson_id)
        db.add(progress)

    progress.completed = True
    progress.progress_percentage = 100
    progress.score = score
    progress.time_spent_seconds = request.time_spent_seconds
    progress.completed_at = datetime.utcnow()

    try:
        await db.commit()
    except Exception as e:
        logger.error("Failed to save lesson progress", lesson_id=lesson_id, error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to save lesson progress")

    points = settings.POINTS_LESSON_COMPLETED
    ledger_result = await GamificationLedger(db, event_bus=event_bus).update(
        user_id, points_earned=points, lesson_completed=True
    )

    logger.info("Lesson completed", user_id=user_id, lesson_id=lesson_id, score=score)
    return {
        "lesson_id": lesson_id,
        "score": score,
        "correct": correct,
        "total": len(quiz),
        "points_earned": points,
        "gamification": LedgerResponse.from_result(ledger_result) if ledger_result else None
    }
