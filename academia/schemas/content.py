"""
academia/schemas/content.py
Content schemas and the per-type question record shapes

Question records form a tagged union keyed by the content type:

    QUIZ        {question, options, answer}
    ASSIGNMENT  {question, points}
    EXAM        {question, points, options?, answer?, is_essay}
"""
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from academia.errors import BadRequestError, ErrorCode
from academia.orm.content import ContentType


# ================= QUESTION RECORDS =================

class QuizQuestion(BaseModel):
    model_config = ConfigDict(extra="ignore")

    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    answer: str

    @model_validator(mode="after")
    def answer_is_an_option(self):
        if self.answer not in self.options:
            raise ValueError("answer must be one of the options")
        return self


class AssignmentQuestion(BaseModel):
    model_config = ConfigDict(extra="ignore")

    question: str = Field(..., min_length=1)
    points: float = Field(..., gt=0)


class ExamQuestion(BaseModel):
    model_config = ConfigDict(extra="ignore")

    question: str = Field(..., min_length=1)
    points: float = Field(..., gt=0)
    options: Optional[List[str]] = None
    answer: Optional[str] = None
    is_essay: bool = False

    @model_validator(mode="before")
    @classmethod
    def accept_essay_type_tag(cls, data: Any) -> Any:
        # Generated exams mark essay items with {"type": "essay"}
        if isinstance(data, dict) and data.get("type") == "essay" and "is_essay" not in data:
            data = {**data, "is_essay": True}
        return data

    @model_validator(mode="after")
    def essay_or_objective(self):
        if self.is_essay:
            if self.options:
                raise ValueError("essay questions cannot have options")
            return self
        if not self.options or len(self.options) < 2:
            raise ValueError("objective questions need at least two options")
        if self.answer is None or self.answer not in self.options:
            raise ValueError("answer must be one of the options")
        return self


QUESTION_MODELS: Dict[ContentType, Type[BaseModel]] = {
    ContentType.QUIZ: QuizQuestion,
    ContentType.ASSIGNMENT: AssignmentQuestion,
    ContentType.EXAM: ExamQuestion,
}

_ADAPTERS = {
    content_type: TypeAdapter(List[model])
    for content_type, model in QUESTION_MODELS.items()
}


def parse_content_type(value: Any) -> ContentType:
    """Coerce a raw type value, raising 400 for anything outside the enum."""
    if isinstance(value, ContentType):
        return value
    try:
        return ContentType(str(value).upper())
    except ValueError:
        allowed = [t.value for t in ContentType]
        raise BadRequestError(
            f"Invalid content type. Must be one of: {', '.join(allowed)}",
            code=ErrorCode.INVALID_CONTENT_TYPE,
            details={"field": "type", "value": value, "allowed": allowed}
        )


def validate_questions(content_type: ContentType, questions: Any) -> List[Dict[str, Any]]:
    """
    Validate a question list against the record shape for `content_type`.

    Returns the normalized records ready to be stored. Raises 400 when the
    list is empty or any record does not match.
    """
    if not isinstance(questions, list) or len(questions) == 0:
        raise BadRequestError(
            "questions must be a non-empty list",
            code=ErrorCode.INVALID_QUESTIONS,
            details={"field": "questions"}
        )
    try:
        records = _ADAPTERS[content_type].validate_python(questions)
    except ValidationError as e:
        raise BadRequestError(
            f"questions do not match the {content_type.value} format",
            code=ErrorCode.INVALID_QUESTIONS,
            details={
                "field": "questions",
                "errors": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
                    for err in e.errors()
                ],
            }
        )
    return [record.model_dump(exclude_none=True) for record in records]


def validate_question(content_type: ContentType, question: Any) -> Dict[str, Any]:
    return validate_questions(content_type, [question])[0]


# ================= REQUEST BODIES =================

class ContentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    type: str
    course_id: int
    questions: Optional[List[Dict[str, Any]]] = None
    auto_generate: bool = False
    # Only honoured for ADMIN callers authoring on behalf of a faculty member
    faculty_id: Optional[int] = None


class ContentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[str] = None
    questions: Optional[List[Dict[str, Any]]] = None


class QuestionAdd(BaseModel):
    question: Dict[str, Any]


class GenerateRequest(BaseModel):
    type: str
    course_id: int
