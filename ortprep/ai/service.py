"""AI content generation: lessons, ORT tests, test analysis and learning paths."""

from typing import Any, Dict, List, Optional, Sequence
import structlog

from ortprep.ai import prompts
from ortprep.ai.client import AIGatewayClient, AIResponseParseError
from ortprep.ai.parsing import extract_json_array, extract_json_object
from ortprep.core.config import settings
from ortprep.schemas.ai import FullTestQuestion

logger = structlog.get_logger()

FALLBACK_ANALYSIS = {
    "assessment": "Тест завершен. Продолжайте практиковаться для улучшения результатов.",
    "strengths": ["Завершение теста"],
    "weaknesses": ["Требуется больше практики"],
    "recommendations": ["Повторите пройденный материал", "Решайте больше практических задач"],
    "motivation": "Каждый шаг вперед - это прогресс! Продолжайте учиться!",
}


async def generate_lesson(
    client: AIGatewayClient,
    topic: str,
    level: int = 1,
    weak_areas: Optional[List[str]] = None,
    language: str = "ru"
) -> Dict[str, Any]:
    """Generate lesson content; an unparseable reply fails the call."""
    content = await client.complete([
        {"role": "system", "content": prompts.LESSON_SYSTEM_PROMPT},
        {"role": "user", "content": prompts.lesson_prompt(topic, level, weak_areas, language)},
    ])
    try:
        lesson = extract_json_object(content)
    except AIResponseParseError:
        logger.error("Failed to parse generated lesson", topic=topic)
        raise

    logger.info("Lesson generated", topic=topic, level=level, language=language)
    return lesson


async def generate_ort_test(
    client: AIGatewayClient,
    part: int,
    variant: int = 1,
    language: str = "ru",
    question_count: Optional[int] = None
) -> Dict[str, Any]:
    count = question_count or settings.ORT_QUESTION_COUNT
    logger.info("Generating ORT test", part=part, variant=variant)

    content = await client.complete(
        [
            {"role": "system", "content": prompts.ort_system_prompt(count, language)},
            {"role": "user", "content": prompts.ort_user_prompt(part, count)},
        ],
        temperature=0.7
    )
    try:
        questions = extract_json_array(content)
    except AIResponseParseError:
        logger.error("Failed to parse ORT questions", part=part, content=content[:500])
        raise AIResponseParseError("Failed to parse questions from AI response")

    logger.info("ORT test generated", part=part, variant=variant, questions=len(questions))
    return {
        "success": True,
        "questions": questions,
        "part": part,
        "variant": variant,
        "questionCount": len(questions),
    }


def score_answers(answers: Sequence[Any], questions: Sequence[FullTestQuestion]) -> Dict[str, Any]:
    """Correct count, per-topic performance and percentage score."""
    correct = 0
    topic_performance: Dict[str, Dict[str, int]] = {}
    missed = []

    for idx, question in enumerate(questions):
        answer = answers[idx] if idx < len(answers) else None
        is_correct = answer == question.correct_option

        topic = question.topic_id or "general"
        stats = topic_performance.setdefault(topic, {"correct": 0, "total": 0})
        stats["total"] += 1
        if is_correct:
            correct += 1
            stats["correct"] += 1
        else:
            missed.append(question.question_text)

    total = len(questions)
    return {
        "score": round(correct / total * 100) if total else 0,
        "correct": correct,
        "total": total,
        "topicPerformance": topic_performance,
        "missed": missed,
    }


async def analyze_test(
    client: AIGatewayClient,
    answers: Sequence[Any],
    questions: Sequence[FullTestQuestion]
) -> Dict[str, Any]:
    """Score a test locally and attach AI feedback.

    Unlike the other generators, an unparseable reply is replaced by
    FALLBACK_ANALYSIS since the score itself is still valid.
    """
    stats = score_answers(answers, questions)

    content = await client.complete([
        {"role": "system", "content": prompts.ANALYSIS_SYSTEM_PROMPT},
        {"role": "user", "content": prompts.analysis_prompt(
            stats["score"], stats["correct"], stats["total"], stats["topicPerformance"], stats["missed"]
        )},
    ])
    try:
        analysis = extract_json_object(content)
    except AIResponseParseError as e:
        logger.warning("Using fallback test analysis", error=e.message)
        analysis = dict(FALLBACK_ANALYSIS)

    logger.info("Test analysis completed", score=stats["score"], correct=stats["correct"], total=stats["total"])
    return {
        "score": stats["score"],
        "correct": stats["correct"],
        "total": stats["total"],
        "topicPerformance": stats["topicPerformance"],
        "analysis": analysis,
    }


async def build_learning_path(
    client: AIGatewayClient,
    test_results: Any = None,
    topic_progress: Any = None,
    current_level: Optional[int] = None,
    language: str = "ru"
) -> Dict[str, Any]:
    content = await client.complete([
        {"role": "system", "content": prompts.LEARNING_PATH_SYSTEM_PROMPT},
        {"role": "user", "content": prompts.learning_path_prompt(
            test_results, topic_progress, current_level, language
        )},
    ])
    learning_path = extract_json_object(content)
    logger.info("Learning path generated", level=current_level)
    return learning_path
