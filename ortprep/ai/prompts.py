"""Prompt templates for lesson, test, analysis and learning-path generation."""

from typing import Any, Dict, List, Optional
import json

LANGUAGE_INSTRUCTIONS = {
    "ru": "Respond entirely in Russian.",
    "kg": "Respond entirely in Kyrgyz language.",
    "en": "Respond entirely in English.",
}

LANGUAGE_NAMES = {"ru": "Russian", "kg": "Kyrgyz", "en": "English"}

LESSON_SYSTEM_PROMPT = "You are an expert math teacher creating engaging lessons. Always respond with valid JSON."
ANALYSIS_SYSTEM_PROMPT = "You are an educational AI that analyzes test results. Always respond with valid JSON."
LEARNING_PATH_SYSTEM_PROMPT = (
    "You are an educational AI that creates personalized learning paths. Always respond with valid JSON."
)

LESSON_STRUCTURE = """{
  "title": "Lesson title",
  "introduction": "Brief engaging introduction (2-3 sentences)",
  "sections": [
    {
      "title": "Section title",
      "content": "Detailed explanation with examples",
      "keyPoints": ["Point 1", "Point 2"],
      "example": {
        "problem": "Example problem",
        "solution": "Step-by-step solution"
      }
    }
  ],
  "quiz": [
    {
      "question": "Quiz question",
      "options": ["A", "B", "C", "D"],
      "correctOption": 0,
      "explanation": "Why this is correct"
    }
  ],
  "summary": "Key takeaways (3-4 bullet points)",
  "vocabulary": [
    { "term": "Math term", "definition": "Definition" }
  ]
}"""

LEARNING_PATH_STRUCTURE = """{
  "summary": "Brief assessment of current state",
  "weakTopics": ["Topic 1", "Topic 2"],
  "strongTopics": ["Topic 1", "Topic 2"],
  "recommendedPath": [
    {
      "order": 1,
      "topic": "Topic name",
      "reason": "Why this topic",
      "estimatedTime": "2 hours",
      "priority": "high"
    }
  ],
  "weeklyGoals": [
    {
      "week": 1,
      "goals": ["Goal 1", "Goal 2"],
      "topics": ["Topic 1", "Topic 2"]
    }
  ],
  "motivationalMessage": "Encouraging message",
  "estimatedTimeToTarget": "4 weeks"
}"""

ORT_QUESTION_STRUCTURE = """[
  {
    "question_text": "Question text here",
    "options": ["А) option1", "Б) option2", "В) option3", "Г) option4"],
    "correct_option": 0,
    "explanation": "Brief explanation of the answer"
  }
]"""

ORT_COMPARISON_OPTIONS = """- А) Величина в колонке А больше
- Б) Величина в колонке Б больше
- В) Величины равны
- Г) Невозможно определить"""


def language_instruction(language: str) -> str:
    return LANGUAGE_INSTRUCTIONS.get(language, LANGUAGE_INSTRUCTIONS["ru"])


def lesson_prompt(topic: str, level: int, weak_areas: Optional[List[str]], language: str) -> str:
    focus = f"Areas needing focus: {', '.join(weak_areas)}" if weak_areas else ""
    return f"""Create an interactive math lesson on "{topic}" for ORT exam preparation.

Student Level: {level}/5
{focus}

Create a comprehensive lesson with this JSON structure:
{LESSON_STRUCTURE}

Include 3-4 sections and 3-5 quiz questions.
{language_instruction(language)}"""


def ort_system_prompt(question_count: int, language: str) -> str:
    return f"""You are an expert ORT (Общереспубликанское тестирование) math test creator for Kyrgyzstan.
Generate {question_count} original math questions in {LANGUAGE_NAMES.get(language, "Russian")}.

For Part 1 questions: Use the Column A vs Column B comparison format where students compare two values.
For Part 2 questions: Use standard multiple choice format with 4 options.

Each question must be:
- Original and not copied from any existing test
- Appropriate difficulty for ORT exam
- Clear and unambiguous
- Have exactly one correct answer

Return ONLY valid JSON array with this structure:
{ORT_QUESTION_STRUCTURE}

For Part 1 comparison questions, options should be:
{ORT_COMPARISON_OPTIONS}"""


def ort_user_prompt(part: int, question_count: int) -> str:
    if part == 1:
        return (
            f"Generate {question_count} Part 1 ORT math comparison questions. Each question should present "
            "two columns (Колонка А and Колонка Б) with mathematical expressions or values to compare. "
            "Topics: arithmetic, algebra, geometry basics, percentages, fractions."
        )
    return (
        f"Generate {question_count} Part 2 ORT math questions. Standard multiple choice with 4 options each. "
        "Topics: equations, functions, geometry, trigonometry, probability, statistics."
    )


def analysis_prompt(
    score: int,
    correct: int,
    total: int,
    topic_performance: Dict[str, Dict[str, int]],
    missed_questions: List[str]
) -> str:
    missed = "\n".join(f"- {text}" for text in missed_questions)
    return f"""Analyze this ORT test performance and provide personalized feedback:

Test Results:
- Score: {score}% ({correct}/{total} correct)
- Topic Performance: {json.dumps(topic_performance, ensure_ascii=False)}

Questions answered incorrectly:
{missed}

Provide:
1. Brief overall assessment (2-3 sentences)
2. List of 2-3 strong areas
3. List of 2-3 areas needing improvement
4. 3 specific recommendations for improvement
5. Motivational message

Respond in Russian. Format as JSON with keys: assessment, strengths, weaknesses, recommendations, motivation"""


def learning_path_prompt(test_results: Any, topic_progress: Any, current_level: Optional[int], language: str) -> str:
    return f"""Create a personalized ORT math learning path based on this student data:

Test Results: {json.dumps(test_results or {}, ensure_ascii=False)}
Topic Progress: {json.dumps(topic_progress or {}, ensure_ascii=False)}
Current Level: {current_level or 1}

Generate a learning path with this JSON structure:
{LEARNING_PATH_STRUCTURE}

Prioritize weak areas while maintaining engagement.
{language_instruction(language)}"""
