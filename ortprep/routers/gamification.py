"""Gamification endpoints."""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import structlog

from ortprep.core.database import get_db
from ortprep.core.dependencies import get_current_user, get_event_bus, ensure_can_view
from ortprep.gamification.events import EventBus
from ortprep.gamification.ledger import GamificationLedger
from ortprep.gamification.leaderboard import Leaderboard
from ortprep.gamification.points_engine import level_progress, next_streak_milestone
from ortprep.models.gamification import Profile, UserAchievement, UserTopicProgress
from ortprep.schemas.gamification import (
    ActivityUpdate, LedgerResponse, ProfileResponse, ProfileSummary, AchievementResponse,
    TopicProgressResponse, LeaderboardResponse, LeaderboardEntry, EventsResponse
)

logger = structlog.get_logger()
router = APIRouter()


@router.post("/activity", response_model=LedgerResponse)
async def record_activity(
    activity: ActivityUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    event_bus: EventBus = Depends(get_event_bus)
):
    """Apply a learning action to the current user's streak, points and achievements."""
    ledger = GamificationLedger(db, event_bus=event_bus)
    result = await ledger.update(
        current_user["user_id"],
        points_earned=activity.points_earned,
        test_score=activity.test_score,
        lesson_completed=activity.lesson_completed,
        topic_id=activity.topic_id
    )
    if result is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return LedgerResponse.from_result(result)


@router.get("/profile/{user_id}", response_model=ProfileSummary)
async def get_profile(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Points, level progress, streak milestone and rank for a user."""
    result = await db.execute(
        select(Profile).where(Profile.id == user_id)
    )
    profile = result.scalar_one_or_none()

    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")

    return {
        "profile": ProfileResponse.model_validate(profile),
        "level_progress": level_progress(profile.points),
        "next_streak_milestone": next_streak_milestone(profile.streak),
        "rank": await Leaderboard(db).rank_of(user_id)
    }


@router.get("/achievements/{user_id}", response_model=List[AchievementResponse])
async def get_achievements(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Achievements unlocked by a user, newest first."""
    ensure_can_view(current_user, user_id)

    result = await db.execute(
        select(UserAchievement)
        .where(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.earned_at.desc())
    )
    return result.scalars().all()


@router.get("/topics/{user_id}", response_model=List[TopicProgressResponse])
async def get_topic_progress(
    user_id: str,
    mastery: Optional[str] = Query(None, pattern="^(weak|in_progress|mastered)$"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Topic mastery records for a user."""
    ensure_can_view(current_user, user_id)

    query = select(UserTopicProgress).where(UserTopicProgress.user_id == user_id)
    if mastery:
        query = query.where(UserTopicProgress.mastery == mastery)

    result = await db.execute(query.order_by(UserTopicProgress.last_practiced.desc()))
    return result.scalars().all()


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    limit: Optional[int] = Query(None, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """All-time leaderboard with the caller's rank."""
    leaderboard = Leaderboard(db)
    return {
        "entries": await leaderboard.top(limit),
        "user_rank": await leaderboard.rank_of(current_user["user_id"])
    }


@router.get("/leaderboard/weekly", response_model=List[LeaderboardEntry])
async def get_weekly_leaderboard(
    limit: Optional[int] = Query(None, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Leaderboard of users active within the weekly window."""
    return await Leaderboard(db).weekly(limit)


@router.get("/events", response_model=EventsResponse)
async def get_events(
    drain: bool = Query(False),
    current_user: dict = Depends(get_current_user),
    event_bus: EventBus = Depends(get_event_bus)
):
    """Pending gamification events; ``drain`` also clears them."""
    user_id = current_user["user_id"]
    if drain:
        return event_bus.drain(user_id)
    return {"events": event_bus.pending(user_id), "confetti": event_bus.confetti_pending(user_id)}


@router.delete("/events/{event_id}", status_code=204)
async def dismiss_event(
    event_id: str,
    current_user: dict = Depends(get_current_user),
    event_bus: EventBus = Depends(get_event_bus)
):
    if not event_bus.dismiss(current_user["user_id"], event_id):
        raise HTTPException(status_code=404, detail="Event not found")
