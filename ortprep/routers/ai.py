"""AI content generation endpoints."""

from typing import Any, Dict
from fastapi import APIRouter, Depends, HTTPException
import structlog

from ortprep.ai import service
from ortprep.ai.client import AIError, AIGatewayClient
from ortprep.core.dependencies import get_ai_client, get_current_user
from ortprep.schemas.ai import (
    LessonRequest, OrtTestRequest, OrtTestResponse, AnalyzeTestRequest, FullTestAnalysis, LearningPathRequest
)

logger = structlog.get_logger()
router = APIRouter()


def ai_http_error(error: AIError) -> HTTPException:
    """Map an AI failure onto the response status and message."""
    return HTTPException(status_code=error.status_code, detail=error.message)


@router.post("/lesson", response_model=Dict[str, Any])
async def generate_lesson(
    request: LessonRequest,
    current_user: dict = Depends(get_current_user),
    client: AIGatewayClient = Depends(get_ai_client)
):
    try:
        return await service.generate_lesson(
            client, request.topic, request.level, request.weak_areas, request.language
        )
    except AIError as e:
        logger.error("Lesson generation error", error=e.message)
        raise ai_http_error(e)


@router.post("/ort-test", response_model=OrtTestResponse, response_model_by_alias=True)
async def generate_ort_test(
    request: OrtTestRequest,
    current_user: dict = Depends(get_current_user),
    client: AIGatewayClient = Depends(get_ai_client)
):
    try:
        return await service.generate_ort_test(client, request.part, request.variant, request.language)
    except AIError as e:
        logger.error("ORT test generation error", error=e.message)
        raise ai_http_error(e)


@router.post("/analyze-test", response_model=FullTestAnalysis, response_model_by_alias=True)
async def analyze_test(
    request: AnalyzeTestRequest,
    current_user: dict = Depends(get_current_user),
    client: AIGatewayClient = Depends(get_ai_client)
):
    try:
        return await service.analyze_test(client, request.answers, request.questions)
    except AIError as e:
        logger.error("Test analysis error", error=e.message)
        raise ai_http_error(e)


@router.post("/learning-path", response_model=Dict[str, Any])
async def generate_learning_path(
    request: LearningPathRequest,
    current_user: dict = Depends(get_current_user),
    client: AIGatewayClient = Depends(get_ai_client)
):
    try:
        return await service.build_learning_path(
            client, request.test_results, request.topic_progress, request.current_level, request.language
        )
    except AIError as e:
        logger.error("Learning path error", error=e.message)
        raise ai_http_error(e)
