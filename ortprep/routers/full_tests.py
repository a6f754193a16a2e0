"""Full test submission endpoints."""

from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from ortprep.ai import service
from ortprep.ai.client import AIError, AIGatewayClient
from ortprep.core.database import get_db
from ortprep.core.dependencies import get_ai_client, get_current_user, get_event_bus
from ortprep.gamification.events import EventBus
from ortprep.gamification.ledger import GamificationLedger
from ortprep.gamification.points_engine import points_for_test
from ortprep.models.progress import UserTest
from ortprep.routers.ai import ai_http_error
from ortprep.schemas.gamification import LedgerResponse
from ortprep.schemas.progress import FullTestSubmission, FullTestSubmissionResult

logger = structlog.get_logger()
router = APIRouter()


@router.post("/submit", response_model=FullTestSubmissionResult)
async def submit_test(
    submission: FullTestSubmission,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: AIGatewayClient = Depends(get_ai_client),
    event_bus: EventBus = Depends(get_event_bus)
):
    """Analyze a finished test, record the attempt and update gamification."""
    user_id = current_user["user_id"]

    try:
        analysis = await service.analyze_test(client, submission.answers, submission.questions)
    except AIError as e:
        logger.error("Test analysis failed", user_id=user_id, error=e.message)
        raise ai_http_error(e)

    now = datetime.utcnow()
    user_test = UserTest(
        user_id=user_id,
        test_id=submission.test_id,
        topic_id=submission.topic_id,
        score=analysis["score"],
        correct=analysis["correct"],
        total=analysis["total"],
        analysis=analysis["analysis"],
        started_at=now,
        completed_at=now
    )
    db.add(user_test)
    try:
        await db.commit()
    except Exception as e:
        logger.error("Failed to save test attempt", user_id=user_id, error=str(e))
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to save test attempt")

    points = points_for_test(analysis["correct"])
    ledger_result = await GamificationLedger(db, event_bus=event_bus).update(
        user_id,
        points_earned=points,
        test_score=analysis["score"],
        topic_id=submission.topic_id
    )

    logger.info("Test submitted", user_id=user_id, test_id=submission.test_id, score=analysis["score"])
    return {
        "user_test_id": user_test.id,
        "result": analysis,
        "points_earned": points,
        "gamification": LedgerResponse.from_result(ledger_result) if ledger_result else None
    }
