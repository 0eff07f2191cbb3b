"""
Content generator tests. The Gemini model object is replaced with a stub so
no network call is made.
"""
import asyncio
import json

import pytest

from academia.config import Settings
from academia.errors import ErrorCode, GenerationFailedError
from academia.orm.content import ContentType
from academia.services.content_generator import (
    GeminiContentGenerator,
    TemplateContentGenerator,
    build_generator,
    build_prompt,
    parse_generated,
)


class StubResponse:
    def __init__(self, text):
        self.text = text


class StubModel:
    def __init__(self, text=None, delay=0.0, error=None):
        self._text = text
        self._delay = delay
        self._error = error
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error:
            raise self._error
        return StubResponse(self._text)


def gemini_with(model, timeout=1.0):
    generator = GeminiContentGenerator("test-key", timeout_seconds=timeout)
    generator.model = model
    return generator


CONTEXT = {
    "course_name": "Algorithms",
    "course_code": "CS301",
    "clos": [{"number": 1, "description": "Analyze complexity"}],
}


async def test_template_generator_returns_valid_sets():
    generator = TemplateContentGenerator()
    quiz = await generator.generate(ContentType.QUIZ, 1, CONTEXT)
    assert len(quiz) == 2
    assert quiz[0]["question"].startswith("[CS301]")

    exam = await generator.generate(ContentType.EXAM, 1)
    assert [q.get("is_essay") for q in exam] == [False, False, True]


async def test_template_generator_does_not_share_state():
    generator = TemplateContentGenerator()
    first = await generator.generate(ContentType.ASSIGNMENT, 1)
    first[0]["question"] = "changed"
    second = await generator.generate(ContentType.ASSIGNMENT, 1)
    assert second[0]["question"] == "Assignment task 1"


def test_prompt_mentions_course_and_clos():
    prompt = build_prompt(ContentType.QUIZ, CONTEXT)
    assert "Algorithms (CS301)" in prompt
    assert "CLO1: Analyze complexity" in prompt
    assert "JSON array" in prompt


def test_parse_accepts_wrapped_list():
    assert parse_generated('{"questions": [{"question": "q"}]}') == [{"question": "q"}]
    with pytest.raises(GenerationFailedError):
        parse_generated("Here are your questions: ...")


async def test_gemini_success():
    questions = [{"question": "Task", "points": 25}]
    model = StubModel(text=json.dumps(questions))
    result = await gemini_with(model).generate(ContentType.ASSIGNMENT, 7, CONTEXT)
    assert result == [{"question": "Task", "points": 25}]
    assert "CS301" in model.prompts[0]


async def test_gemini_timeout_is_retryable():
    generator = gemini_with(StubModel(text="[]", delay=0.5), timeout=0.05)
    with pytest.raises(GenerationFailedError) as excinfo:
        await generator.generate(ContentType.QUIZ, 1)
    assert excinfo.value.retryable is True
    assert excinfo.value.code == ErrorCode.GENERATION_TIMEOUT
    assert excinfo.value.status_code == 502


async def test_gemini_sdk_error_is_retryable():
    generator = gemini_with(StubModel(error=RuntimeError("connection reset")))
    with pytest.raises(GenerationFailedError) as excinfo:
        await generator.generate(ContentType.QUIZ, 1)
    assert excinfo.value.retryable is True


@pytest.mark.parametrize("text", [
    "not json at all",
    "[]",
    '{"answer": "no list here"}',
    '[{"question": "Pick", "options": ["a", "b"], "answer": "z"}]',
])
async def test_gemini_malformed_output_is_not_retryable(text):
    generator = gemini_with(StubModel(text=text))
    with pytest.raises(GenerationFailedError) as excinfo:
        await generator.generate(ContentType.QUIZ, 1)
    assert excinfo.value.retryable is False


def test_build_generator_falls_back_without_key():
    generator = build_generator(Settings(content_generator="gemini", gemini_api_key=None))
    assert isinstance(generator, TemplateContentGenerator)

    generator = build_generator(Settings(content_generator="gemini", gemini_api_key="k"))
    assert isinstance(generator, GeminiContentGenerator)

    generator = build_generator(Settings(content_generator="template", gemini_api_key="k"))
    assert isinstance(generator, TemplateContentGenerator)
