"""Gamification request and response schemas."""

from typing import Any, Dict, List, Optional
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class ActivityUpdate(BaseModel):
    points_earned: int = Field(default=0, ge=0)
    test_score: Optional[float] = Field(default=None, ge=0, le=100)
    lesson_completed: bool = False
    topic_id: Optional[str] = None


class LevelProgress(BaseModel):
    level: int
    points_in_level: int
    points_per_level: int
    points_to_next_level: int
    progress_percentage: float


class StreakMilestone(BaseModel):
    days: int
    reward: int
    days_remaining: int


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    points: int
    level: int
    streak: int
    last_activity_date: Optional[date] = None


class ProfileSummary(BaseModel):
    profile: ProfileResponse
    level_progress: LevelProgress
    next_streak_milestone: Optional[StreakMilestone] = None
    rank: Optional[int] = None


class AchievementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    achievement: str
    points_awarded: int
    earned_at: Optional[datetime] = None


class TopicProgressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    topic_id: str
    mastery: str
    progress_percentage: Optional[float] = None
    last_practiced: Optional[datetime] = None


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    points: int
    level: int
    streak: int


class LeaderboardResponse(BaseModel):
    entries: List[LeaderboardEntry]
    user_rank: Optional[int] = None


class GamificationEvent(BaseModel):
    id: str
    type: str
    value: Optional[Any] = None
    title: str
    description: Optional[str] = None
    icon: str
    created_at: str


class EventsResponse(BaseModel):
    events: List[GamificationEvent]
    confetti: bool = False


class AwardedAchievement(BaseModel):
    achievement: str
    points_awarded: int
    total_points: int
    level: int


class LedgerResponse(BaseModel):
    streak: int
    points: int
    level: int
    level_up: bool
    achievements: List[AwardedAchievement]
    achievement_points: int
    total_points: int
    final_level: int
    mastery: Optional[str] = None

    @classmethod
    def from_result(cls, result) -> "LedgerResponse":
        data: Dict[str, Any] = result.model_dump(mode="json")
        return cls(**data)
