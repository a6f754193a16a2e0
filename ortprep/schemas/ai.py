"""AI content generation schemas."""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

LANGUAGE_PATTERN = "^(ru|kg|en)$"


class LessonRequest(BaseModel):
    topic: str = Field(min_length=1)
    level: int = Field(default=1, ge=1, le=5)
    weak_areas: Optional[List[str]] = Field(default=None, alias="weakAreas")
    language: str = Field(default="ru", pattern=LANGUAGE_PATTERN)

    model_config = {"populate_by_name": True}


class OrtTestRequest(BaseModel):
    part: int = Field(ge=1, le=2)
    variant: int = Field(default=1, ge=1)
    language: str = Field(default="ru", pattern=LANGUAGE_PATTERN)


class FullTestQuestion(BaseModel):
    """Question of a full test as submitted for analysis."""

    question_text: str = ""
    options: List[str] = Field(default_factory=list)
    correct_option: Union[int, str]
    topic_id: Optional[str] = None
    explanation: Optional[str] = None


class AnalyzeTestRequest(BaseModel):
    test_attempt_id: Optional[str] = Field(default=None, alias="testAttemptId")
    answers: List[Optional[Union[int, str]]]
    questions: List[FullTestQuestion] = Field(min_length=1)

    model_config = {"populate_by_name": True}


class LearningPathRequest(BaseModel):
    test_results: Optional[Any] = Field(default=None, alias="testResults")
    topic_progress: Optional[Any] = Field(default=None, alias="topicProgress")
    current_level: Optional[int] = Field(default=None, alias="currentLevel")
    language: str = Field(default="ru", pattern=LANGUAGE_PATTERN)

    model_config = {"populate_by_name": True}


class TopicPerformance(BaseModel):
    correct: int
    total: int


class FullTestAnalysis(BaseModel):
    score: int
    correct: int
    total: int
    topic_performance: Dict[str, TopicPerformance] = Field(alias="topicPerformance")
    analysis: Dict[str, Any]

    model_config = {"populate_by_name": True}


class OrtTestResponse(BaseModel):
    success: bool = True
    questions: List[Dict[str, Any]]
    part: int
    variant: int
    question_count: int = Field(alias="questionCount")

    model_config = {"populate_by_name": True}
