"""Lesson and test progress schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ortprep.schemas.ai import AnalyzeTestRequest, FullTestAnalysis
from ortprep.schemas.gamification import LedgerResponse


class LessonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    topic_id: Optional[str] = None
    title: str
    title_ru: Optional[str] = None
    difficulty_level: int = 1
    content: Optional[Dict[str, Any]] = None
    is_ai_generated: bool = False


class LessonComplete(BaseModel):
    quiz_answers: List[Optional[int]] = Field(default_factory=list)
    time_spent_seconds: int = Field(default=0, ge=0)


class LessonCompletion(BaseModel):
    lesson_id: str
    score: int
    correct: int
    total: int
    points_earned: int
    gamification: Optional[LedgerResponse] = None


class FullTestSubmission(AnalyzeTestRequest):
    test_id: Optional[str] = None
    topic_id: Optional[str] = None


class FullTestSubmissionResult(BaseModel):
    user_test_id: str
    result: FullTestAnalysis
    points_earned: int
    gamification: Optional[LedgerResponse] = None
