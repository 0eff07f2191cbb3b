"""
academia/services/content_generator.py
Question generation for quizzes, assignments and exams

Two implementations behind one interface:
- GeminiContentGenerator: asks Gemini for a JSON question list
- TemplateContentGenerator: deterministic sample questions, used when no
  API key is configured and in tests

Generators only produce questions. Nothing here touches the database.
"""
import asyncio
import copy
import json
import logging
from typing import Any, Dict, List, Optional

import google.generativeai as genai

from academia.config import Settings
from academia.errors import BadRequestError, ErrorCode, GenerationFailedError
from academia.orm.content import ContentType
from academia.schemas.content import validate_questions

logger = logging.getLogger(__name__)


class ContentGenerator:
    """Interface: produce a validated question list for a content type."""

    name = "base"

    async def generate(
        self,
        content_type: ContentType,
        course_id: int,
        context: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        raise NotImplementedError


def _checked(content_type: ContentType, questions: Any) -> List[Dict[str, Any]]:
    """Run generated output through the same validation as user input."""
    try:
        return validate_questions(content_type, questions)
    except BadRequestError as e:
        logger.warning(f"Generated {content_type.value} questions rejected: {e.message}")
        raise GenerationFailedError(
            "Generated questions did not match the expected format",
            retryable=False,
        )


# ================= TEMPLATES =================

_OPTIONS = ["Option A", "Option B", "Option C", "Option D"]

SAMPLE_QUESTIONS: Dict[ContentType, List[Dict[str, Any]]] = {
    ContentType.QUIZ: [
        {"question": "Sample question 1?", "options": _OPTIONS, "answer": "Option A"},
        {"question": "Sample question 2?", "options": _OPTIONS, "answer": "Option C"},
    ],
    ContentType.ASSIGNMENT: [
        {"question": "Assignment task 1", "points": 50},
        {"question": "Assignment task 2", "points": 50},
    ],
    ContentType.EXAM: [
        {"question": "Exam question 1?", "points": 20, "options": _OPTIONS, "answer": "Option B"},
        {"question": "Exam question 2?", "points": 20, "options": _OPTIONS, "answer": "Option D"},
        {"question": "Exam essay question", "points": 60, "is_essay": True},
    ],
}


class TemplateContentGenerator(ContentGenerator):
    """Returns the fixed sample set for the requested type."""

    name = "template"

    async def generate(self, content_type, course_id, context=None):
        questions = copy.deepcopy(SAMPLE_QUESTIONS[content_type])
        if context and context.get("course_code"):
            for item in questions:
                item["question"] = f"[{context['course_code']}] {item['question']}"
        return _checked(content_type, questions)


# ================= GEMINI =================

_SHAPES = {
    ContentType.QUIZ: '{"question": str, "options": [str, ...], "answer": str}  (answer must be one of options)',
    ContentType.ASSIGNMENT: '{"question": str, "points": number}',
    ContentType.EXAM: (
        'objective: {"question": str, "points": number, "options": [str, ...], "answer": str}; '
        'essay: {"question": str, "points": number, "is_essay": true}'
    ),
}


def build_prompt(content_type: ContentType, context: Optional[Dict[str, Any]] = None) -> str:
    context = context or {}
    lines = [
        f"Write questions for a university {content_type.value.lower()}.",
        f"Course: {context.get('course_name', 'unknown')} ({context.get('course_code', '')})",
    ]
    clos = context.get("clos") or []
    if clos:
        lines.append("Course learning outcomes:")
        lines.extend(f"  CLO{clo['number']}: {clo['description']}" for clo in clos)
    lines.append("Respond with a JSON array only. Each element must have the shape:")
    lines.append(f"  {_SHAPES[content_type]}")
    return "\n".join(lines)


def parse_generated(text: str) -> Any:
    """Decode the model output; a {"questions": [...]} wrapper is accepted."""
    try:
        payload = json.loads(text)
    except (TypeError, ValueError):
        raise GenerationFailedError("Generation service returned malformed JSON", retryable=False)
    if isinstance(payload, dict) and "questions" in payload:
        payload = payload["questions"]
    return payload


class GeminiContentGenerator(ContentGenerator):
    name = "gemini"

    def __init__(self, api_key: str, model_name: str = "gemini-1.5-flash", timeout_seconds: float = 30.0):
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.timeout_seconds = timeout_seconds
        self.model = genai.GenerativeModel(
            model_name,
            generation_config={"response_mime_type": "application/json"},
        )

    async def generate(self, content_type, course_id, context=None):
        prompt = build_prompt(content_type, context)
        try:
            response = await asyncio.wait_for(
                self.model.generate_content_async(prompt),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(f"[LLM] Generation timed out after {self.timeout_seconds}s (course {course_id})")
            raise GenerationFailedError(
                "Generation service timed out",
                retryable=True,
                code=ErrorCode.GENERATION_TIMEOUT,
            )
        except Exception as e:
            logger.error(f"[LLM] Generation error: {e}")
            raise GenerationFailedError("Generation service unavailable", retryable=True)

        try:
            text = response.text
        except ValueError as e:
            # Raised by the SDK when the candidate was blocked or empty
            logger.error(f"[LLM] Empty response: {e}")
            raise GenerationFailedError("Generation service returned no content", retryable=True)

        return _checked(content_type, parse_generated(text))


def build_generator(settings: Settings) -> ContentGenerator:
    if settings.content_generator == "gemini":
        if settings.gemini_api_key:
            return GeminiContentGenerator(
                settings.gemini_api_key,
                settings.gemini_model,
                settings.generation_timeout_seconds,
            )
        logger.warning("GEMINI_API_KEY not set - falling back to template question generation")
    elif settings.content_generator != "template":
        logger.warning(f"Unknown CONTENT_GENERATOR '{settings.content_generator}' - using templates")
    return TemplateContentGenerator()
