"""Leaderboard queries."""

from typing import Dict, Any, List, Optional
from datetime import date, timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from ortprep.core.config import settings
from ortprep.models.gamification import Profile


def _entries(profiles) -> List[Dict[str, Any]]:
    """Board rows; equal totals share a rank, as in rank_of."""
    entries = []
    for idx, profile in enumerate(profiles):
        if idx and profile.points == entries[-1]["points"]:
            rank = entries[-1]["rank"]
        else:
            rank = idx + 1
        entries.append({
            "rank": rank,
            "user_id": profile.id,
            "name": profile.name,
            "avatar_url": profile.avatar_url,
            "points": profile.points,
            "level": profile.level,
            "streak": profile.streak,
        })
    return entries


class Leaderboard:
    """Ranks profiles by total points."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def top(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Highest point totals; order among equal totals is store order."""
        result = await self.db.execute(
            select(Profile)
            .order_by(Profile.points.desc())
            .limit(limit or settings.LEADERBOARD_SIZE)
            .execution_options(populate_existing=True)
        )
        return _entries(result.scalars().all())

    async def weekly(self, limit: Optional[int] = None, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Top profiles among those active within the weekly window."""
        today = today or date.today()
        since = today - timedelta(days=settings.WEEKLY_WINDOW_DAYS - 1)
        result = await self.db.execute(
            select(Profile)
            .where(Profile.last_activity_date >= since)
            .order_by(Profile.points.desc())
            .limit(limit or settings.LEADERBOARD_SIZE)
            .execution_options(populate_existing=True)
        )
        return _entries(result.scalars().all())

    async def rank_of(self, user_id: str) -> Optional[int]:
        """One plus the number of profiles with strictly more points."""
        points = (
            await self.db.execute(select(Profile.points).where(Profile.id == user_id))
        ).scalar_one_or_none()
        if points is None:
            return None

        ahead = await self.db.execute(
            select(func.count(Profile.id)).where(Profile.points > points)
        )
        return ahead.scalar_one() + 1
