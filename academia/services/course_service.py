"""
academia/services/course_service.py
Course catalog

A course is created together with its initial CLOs and (optionally) its
first faculty link in one transaction, and deleted together with every row
that references it in one transaction.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from academia.errors import BadRequestError, ConflictError, ErrorCode, NotFoundError
from academia.orm.clo import CLO
from academia.orm.content import Content
from academia.orm.course import Course
from academia.orm.department import Department
from academia.orm.faculty_assignment import FacultyCourseAssignment
from academia.orm.user import User
from academia.schemas.course import CourseCreate, CourseUpdate
from academia.services.activity_logger import Action, ActivityLogger
from academia.services.assignment_service import find_assignment, require_faculty_user
from academia.services.serializers import serialize_course
from academia.services.transaction import atomic

logger = logging.getLogger(__name__)

CODE_TAKEN = "Course with this code already exists"


class CourseService:

    def __init__(self, db: AsyncSession, audit: ActivityLogger):
        self.db = db
        self.audit = audit

    async def _code_owner(self, code: str) -> Optional[int]:
        result = await self.db.execute(select(Course.id).where(Course.code == code))
        return result.scalar_one_or_none()

    async def _require_department(self, department_id: Optional[int]) -> None:
        if department_id is not None and await self.db.get(Department, department_id) is None:
            raise NotFoundError("Department", department_id)

    async def get_course(self, course_id: int, include_contents: bool = True) -> Course:
        stmt = select(Course).where(Course.id == course_id).execution_options(populate_existing=True)
        if include_contents:
            stmt = stmt.options(selectinload(Course.contents))
        course = (await self.db.execute(stmt)).scalar_one_or_none()
        if course is None:
            raise NotFoundError("Course", course_id, code=ErrorCode.COURSE_NOT_FOUND)
        return course

    async def create_course(self, actor: User, data: CourseCreate) -> Dict[str, Any]:
        """
        Create a course with its initial CLOs and optional faculty link.

        Raises:
            ConflictError: code already used
            BadRequestError: two initial CLOs share a number, or faculty_id is not FACULTY
            NotFoundError: department or faculty does not exist
        """
        if await self._code_owner(data.code) is not None:
            raise ConflictError(CODE_TAKEN, code=ErrorCode.COURSE_CODE_TAKEN)
        await self._require_department(data.department_id)

        numbered = [
            (clo.number if clo.number is not None else position, clo.description)
            for position, clo in enumerate(data.clos, start=1)
        ]
        numbers = [number for number, _ in numbered]
        if len(numbers) != len(set(numbers)):
            raise BadRequestError(
                "CLO numbers must be unique within a course",
                details={"numbers": numbers}
            )

        faculty = None
        if data.faculty_id is not None:
            faculty = await require_faculty_user(self.db, data.faculty_id)

        async with atomic(self.db, CODE_TAKEN, ErrorCode.COURSE_CODE_TAKEN):
            course = Course(
                name=data.name,
                code=data.code,
                description=data.description,
                credit_hours=data.credit_hours,
                department_id=data.department_id,
                clos=[CLO(number=number, description=description) for number, description in numbered],
                faculty_assignments=[FacultyCourseAssignment(faculty_id=faculty.id)] if faculty else [],
            )
            self.db.add(course)
            await self.db.flush()
            self.audit.record(actor.id, Action.CREATE_COURSE, {
                "course_id": course.id,
                "course_code": course.code,
                "clo_count": len(numbered),
                "faculty_id": faculty.id if faculty else None,
            })

        logger.info(f"Course {course.code} (id={course.id}) created by {actor.id}")
        return serialize_course(await self.get_course(course.id, include_contents=False))

    async def update_course(self, actor: User, course_id: int, data: CourseUpdate) -> Dict[str, Any]:
        course = await self.get_course(course_id, include_contents=False)
        fields = data.model_dump(exclude_unset=True)
        faculty_id = fields.pop("faculty_id", None)

        for required in ("name", "code", "credit_hours"):
            if required in fields and fields[required] is None:
                raise BadRequestError(f"{required} cannot be null", details={"field": required})

        new_code = fields.get("code")
        if new_code is not None and new_code != course.code:
            owner = await self._code_owner(new_code)
            if owner is not None and owner != course.id:
                raise ConflictError(CODE_TAKEN, code=ErrorCode.COURSE_CODE_TAKEN)
        if fields.get("department_id") is not None:
            await self._require_department(fields["department_id"])

        faculty = None
        if faculty_id is not None:
            faculty = await require_faculty_user(self.db, faculty_id)
            if await find_assignment(self.db, faculty_id, course.id) is not None:
                # Already linked; linking again is a no-op
                faculty = None

        async with atomic(self.db, CODE_TAKEN, ErrorCode.COURSE_CODE_TAKEN):
            for key, value in fields.items():
                setattr(course, key, value)
            if faculty is not None:
                self.db.add(FacultyCourseAssignment(faculty_id=faculty.id, course_id=course.id))
            await self.db.flush()
            self.audit.record(actor.id, Action.UPDATE_COURSE, {
                "course_id": course.id,
                "fields": sorted(fields.keys()),
                "linked_faculty_id": faculty.id if faculty else None,
            })

        return serialize_course(await self.get_course(course.id, include_contents=False))

    async def delete_course(self, actor: User, course_id: int) -> Dict[str, Any]:
        """
        Delete a course and everything that references it, atomically.

        Explicit statements rather than ORM cascades, so SQLite without
        foreign-key enforcement behaves the same as PostgreSQL.
        """
        row = (await self.db.execute(
            select(Course.id, Course.code).where(Course.id == course_id)
        )).one_or_none()
        if row is None:
            raise NotFoundError("Course", course_id, code=ErrorCode.COURSE_NOT_FOUND)

        clo_count = (await self.db.execute(
            select(func.count(CLO.id)).where(CLO.course_id == course_id)
        )).scalar() or 0
        assignment_count = (await self.db.execute(
            select(func.count(FacultyCourseAssignment.id)).where(FacultyCourseAssignment.course_id == course_id)
        )).scalar() or 0
        content_count = (await self.db.execute(
            select(func.count(Content.id)).where(Content.course_id == course_id)
        )).scalar() or 0

        async with atomic(self.db):
            await self.db.execute(delete(CLO).where(CLO.course_id == course_id))
            await self.db.execute(
                delete(FacultyCourseAssignment).where(FacultyCourseAssignment.course_id == course_id)
            )
            await self.db.execute(delete(Content).where(Content.course_id == course_id))
            await self.db.execute(delete(Course).where(Course.id == course_id))
            self.audit.record(actor.id, Action.DELETE_COURSE, {
                "course_id": course_id,
                "course_code": row.code,
                "deleted_clos": clo_count,
                "deleted_assignments": assignment_count,
                "deleted_contents": content_count,
            })

        logger.info(f"Course {row.code} (id={course_id}) deleted by {actor.id}")
        return {
            "message": "Course deleted successfully",
            "deleted_clos": clo_count,
            "deleted_assignments": assignment_count,
            "deleted_contents": content_count,
        }

    async def list_courses(
        self,
        department_id: Optional[int] = None,
        code: Optional[str] = None,
        name: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        stmt = select(Course)
        if department_id is not None:
            stmt = stmt.where(Course.department_id == department_id)
        if code:
            stmt = stmt.where(Course.code.ilike(f"%{code}%"))
        if name:
            stmt = stmt.where(Course.name.ilike(f"%{name}%"))
        stmt = stmt.order_by(Course.code.asc())

        result = await self.db.execute(stmt)
        return [serialize_course(course) for course in result.scalars().all()]

    async def get_courses_by_faculty(self, faculty_id: int) -> List[Dict[str, Any]]:
        """Courses linked to the faculty member, most recently assigned first"""
        if await self.db.get(User, faculty_id) is None:
            raise NotFoundError("Faculty", faculty_id, code=ErrorCode.USER_NOT_FOUND)

        result = await self.db.execute(
            select(FacultyCourseAssignment)
            .options(selectinload(FacultyCourseAssignment.course).selectinload(Course.contents))
            .where(FacultyCourseAssignment.faculty_id == faculty_id)
            .order_by(FacultyCourseAssignment.assigned_at.desc(), FacultyCourseAssignment.id.desc())
        )
        return [
            {
                **serialize_course(assignment.course, include_contents=True),
                "assigned_at": assignment.assigned_at.isoformat() if assignment.assigned_at else None,
                "assignment_id": assignment.id,
            }
            for assignment in result.scalars().all()
        ]
