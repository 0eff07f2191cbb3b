"""
academia/services/content_service.py
Content repository: quizzes, assignments and exams authored by faculty

Rules:
- A FACULTY member may only author content for courses they are assigned to
- Only the author (or an ADMIN) may read, change or delete a content item
- The question list is validated against the content type and is never
  empty; add/remove operations replace the whole list
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academia.errors import BadRequestError, ErrorCode, ForbiddenError, NotFoundError
from academia.orm.content import Content, ContentType
from academia.orm.course import Course
from academia.orm.user import User, UserRole
from academia.rbac import enforce_ownership
from academia.schemas.content import (
    ContentCreate,
    ContentUpdate,
    parse_content_type,
    validate_question,
    validate_questions,
)
from academia.services.activity_logger import Action, ActivityLogger
from academia.services.assignment_service import find_assignment, require_course, require_faculty_user
from academia.services.content_generator import ContentGenerator
from academia.services.serializers import serialize_content
from academia.services.transaction import atomic

logger = logging.getLogger(__name__)


def generation_context(course: Course) -> Dict[str, Any]:
    return {
        "course_name": course.name,
        "course_code": course.code,
        "clos": [{"number": clo.number, "description": clo.description} for clo in course.clos],
    }


class ContentService:

    def __init__(self, db: AsyncSession, audit: ActivityLogger, generator: ContentGenerator):
        self.db = db
        self.audit = audit
        self.generator = generator

    async def _check_course_access(self, actor: User, course_id: int) -> Course:
        """
        The course must exist; a FACULTY caller must be assigned to it.
        ADMIN bypasses the assignment check.
        """
        course = await require_course(self.db, course_id)
        if actor.role == UserRole.ADMIN:
            return course
        if await find_assignment(self.db, actor.id, course_id) is None:
            logger.warning(f"Faculty {actor.id} is not assigned to course {course_id}")
            raise ForbiddenError(
                "You are not assigned to this course",
                code=ErrorCode.COURSE_NOT_ASSIGNED,
                details={"course_id": course_id}
            )
        return course

    async def _load(self, content_id: int) -> Content:
        result = await self.db.execute(
            select(Content)
            .where(Content.id == content_id)
            .execution_options(populate_existing=True)
        )
        content = result.scalar_one_or_none()
        if content is None:
            raise NotFoundError("Content", content_id, code=ErrorCode.CONTENT_NOT_FOUND)
        return content

    async def _owned(self, operation: str, actor: User, content_id: int) -> Content:
        content = await self._load(content_id)
        enforce_ownership(operation, actor, content.faculty_id, "content")
        return content

    async def create(self, actor: User, data: ContentCreate) -> Dict[str, Any]:
        """
        Create a content item for a course.

        Questions come either from the request or, with auto_generate, from
        the content generator. Nothing is written if generation fails.
        """
        content_type = parse_content_type(data.type)
        course = await self._check_course_access(actor, data.course_id)

        author_id = actor.id
        if actor.role == UserRole.ADMIN and data.faculty_id is not None:
            author_id = (await require_faculty_user(self.db, data.faculty_id)).id

        if data.auto_generate:
            questions = await self.generator.generate(content_type, course.id, generation_context(course))
        else:
            questions = validate_questions(content_type, data.questions)

        async with atomic(self.db):
            content = Content(
                title=data.title,
                type=content_type,
                questions=questions,
                course_id=course.id,
                faculty_id=author_id,
            )
            self.db.add(content)
            await self.db.flush()
            self.audit.record(actor.id, Action.CREATE_CONTENT, {
                "content_id": content.id,
                "course_id": course.id,
                "type": content_type.value,
                "question_count": len(questions),
                "auto_generated": data.auto_generate,
            })

        logger.info(f"Content {content.id} ({content_type.value}) created for course {course.id} by {actor.id}")
        return serialize_content(await self._load(content.id))

    async def get(self, actor: User, content_id: int) -> Dict[str, Any]:
        return serialize_content(await self._owned("content:read", actor, content_id))

    async def update(self, actor: User, content_id: int, data: ContentUpdate) -> Dict[str, Any]:
        content = await self._owned("content:update", actor, content_id)
        fields = data.model_dump(exclude_unset=True)
        if "title" in fields and fields["title"] is None:
            raise BadRequestError("title cannot be null", details={"field": "title"})

        content_type = content.type
        if fields.get("type") is not None:
            content_type = parse_content_type(fields["type"])

        questions = None
        if fields.get("questions") is not None:
            questions = validate_questions(content_type, fields["questions"])
        elif content_type != content.type:
            # Existing questions must still fit the new type
            questions = validate_questions(content_type, list(content.questions or []))

        async with atomic(self.db):
            if fields.get("title") is not None:
                content.title = fields["title"]
            content.type = content_type
            if questions is not None:
                content.questions = questions
            await self.db.flush()
            self.audit.record(actor.id, Action.UPDATE_CONTENT, {
                "content_id": content.id,
                "fields": sorted(k for k, v in fields.items() if v is not None),
            })

        return serialize_content(await self._load(content.id))

    async def delete(self, actor: User, content_id: int) -> None:
        content = await self._owned("content:delete", actor, content_id)
        metadata = {
            "content_id": content.id,
            "course_id": content.course_id,
            "faculty_id": content.faculty_id,
            "title": content.title,
        }
        async with atomic(self.db):
            await self.db.delete(content)
            self.audit.record(actor.id, Action.DELETE_CONTENT, metadata)
        logger.info(f"Content {metadata['content_id']} deleted by {actor.id}")

    async def add_question(self, actor: User, content_id: int, question: Dict[str, Any]) -> Dict[str, Any]:
        content = await self._owned("content:update", actor, content_id)
        record = validate_question(content.type, question)

        async with atomic(self.db):
            # Assign a new list so the JSON column is flagged dirty
            content.questions = list(content.questions or []) + [record]
            await self.db.flush()
            self.audit.record(actor.id, Action.ADD_CONTENT_QUESTION, {
                "content_id": content.id,
                "question_count": len(content.questions),
            })

        return serialize_content(await self._load(content.id))

    async def remove_question(self, actor: User, content_id: int, index: int) -> Dict[str, Any]:
        content = await self._owned("content:update", actor, content_id)
        questions = list(content.questions or [])

        if index < 0 or index >= len(questions):
            raise BadRequestError(
                "Invalid question index",
                code=ErrorCode.INDEX_OUT_OF_RANGE,
                details={"index": index, "question_count": len(questions)}
            )
        if len(questions) == 1:
            raise BadRequestError(
                "Content must keep at least one question",
                code=ErrorCode.INVALID_QUESTIONS,
                details={"index": index, "question_count": 1}
            )

        del questions[index]
        async with atomic(self.db):
            content.questions = questions
            await self.db.flush()
            self.audit.record(actor.id, Action.REMOVE_CONTENT_QUESTION, {
                "content_id": content.id,
                "removed_index": index,
                "question_count": len(questions),
            })

        return serialize_content(await self._load(content.id))

    async def list_by_faculty(self, faculty_id: int) -> List[Dict[str, Any]]:
        """Content authored by one faculty member, newest first"""
        result = await self.db.execute(
            select(Content)
            .where(Content.faculty_id == faculty_id)
            .order_by(Content.created_at.desc(), Content.id.desc())
        )
        return [serialize_content(c) for c in result.scalars().all()]

    async def list_by_course(
        self,
        actor: User,
        course_id: int,
        content_type: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Content of one course, newest first.

        FACULTY callers must be assigned to the course and see only their
        own items; ADMIN sees everything.
        """
        await self._check_course_access(actor, course_id)
        stmt = select(Content).where(Content.course_id == course_id)
        if actor.role != UserRole.ADMIN:
            stmt = stmt.where(Content.faculty_id == actor.id)
        if content_type:
            stmt = stmt.where(Content.type == parse_content_type(content_type))
        stmt = stmt.order_by(Content.created_at.desc(), Content.id.desc())

        result = await self.db.execute(stmt)
        return [serialize_content(c) for c in result.scalars().all()]

    async def generate(self, actor: User, type_value: str, course_id: int) -> Dict[str, Any]:
        """Preview generated questions; nothing is stored."""
        content_type: ContentType = parse_content_type(type_value)
        course = await self._check_course_access(actor, course_id)
        questions = await self.generator.generate(content_type, course.id, generation_context(course))
        logger.info(f"Generated {len(questions)} {content_type.value} questions for course {course.id}")
        return {
            "type": content_type.value,
            "course_id": course.id,
            "questions": questions,
        }
