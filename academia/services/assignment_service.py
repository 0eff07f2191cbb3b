"""
academia/services/assignment_service.py
Assignment ledger: which faculty members teach which courses

Rules:
- Only users with the FACULTY role can be linked to a course
- A (faculty, course) pair exists at most once (database constraint)
- Bulk operations are not atomic across the batch: each new pair is
  committed on its own, and pairs that already exist are reported, not
  treated as errors
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from academia.errors import BadRequestError, ConflictError, ErrorCode, NotFoundError
from academia.orm.course import Course
from academia.orm.faculty_assignment import FacultyCourseAssignment
from academia.orm.user import User, UserRole
from academia.services.activity_logger import Action, ActivityLogger
from academia.services.serializers import serialize_assignment
from academia.services.transaction import atomic

logger = logging.getLogger(__name__)


async def require_course(db: AsyncSession, course_id: int) -> Course:
    course = await db.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course", course_id, code=ErrorCode.COURSE_NOT_FOUND)
    return course


async def require_faculty_user(db: AsyncSession, faculty_id: int) -> User:
    """Return the user if it exists and has the FACULTY role."""
    user = await db.get(User, faculty_id)
    if user is None:
        raise NotFoundError("Faculty", faculty_id, code=ErrorCode.USER_NOT_FOUND)
    if user.role != UserRole.FACULTY:
        raise BadRequestError(
            "User is not a faculty member",
            code=ErrorCode.NOT_FACULTY,
            details={"user_id": faculty_id, "role": user.role.value}
        )
    return user


async def find_assignment(db: AsyncSession, faculty_id: int, course_id: int) -> Optional[FacultyCourseAssignment]:
    result = await db.execute(
        select(FacultyCourseAssignment).where(
            FacultyCourseAssignment.faculty_id == faculty_id,
            FacultyCourseAssignment.course_id == course_id,
        )
    )
    return result.scalar_one_or_none()


def _dedupe(ids: List[int]) -> List[int]:
    return list(dict.fromkeys(ids))


class AssignmentService:

    def __init__(self, db: AsyncSession, audit: ActivityLogger):
        self.db = db
        self.audit = audit

    async def assign(self, actor: User, faculty_id: int, course_id: int) -> Dict[str, Any]:
        faculty = await require_faculty_user(self.db, faculty_id)
        course = await require_course(self.db, course_id)

        if await find_assignment(self.db, faculty_id, course_id) is not None:
            raise ConflictError(
                "Faculty is already assigned to this course",
                code=ErrorCode.ALREADY_ASSIGNED
            )

        async with atomic(self.db, "Faculty is already assigned to this course", ErrorCode.ALREADY_ASSIGNED):
            assignment = FacultyCourseAssignment(faculty=faculty, course=course)
            self.db.add(assignment)
            await self.db.flush()
            self.audit.record(actor.id, Action.CREATE_FACULTY_COURSE_ASSIGNMENT, {
                "assignment_id": assignment.id,
                "faculty_id": faculty.id,
                "faculty_name": faculty.name,
                "course_id": course.id,
                "course_name": course.name,
                "course_code": course.code,
            })

        logger.info(f"Faculty {faculty_id} assigned to course {course_id} by {actor.id}")
        return serialize_assignment(assignment, include_course=True)

    async def remove(self, actor: User, faculty_id: int, course_id: int) -> None:
        assignment = await find_assignment(self.db, faculty_id, course_id)
        if assignment is None:
            raise NotFoundError("Faculty-course assignment", code=ErrorCode.ASSIGNMENT_NOT_FOUND)
        await self._delete(actor, assignment)

    async def remove_by_id(self, actor: User, assignment_id: int) -> None:
        assignment = await self.db.get(FacultyCourseAssignment, assignment_id)
        if assignment is None:
            raise NotFoundError("Faculty-course assignment", assignment_id, code=ErrorCode.ASSIGNMENT_NOT_FOUND)
        await self._delete(actor, assignment)

    async def _delete(self, actor: User, assignment: FacultyCourseAssignment) -> None:
        metadata = {
            "deleted_assignment_id": assignment.id,
            "faculty_id": assignment.faculty_id,
            "course_id": assignment.course_id,
        }
        async with atomic(self.db):
            await self.db.delete(assignment)
            self.audit.record(actor.id, Action.DELETE_FACULTY_COURSE_ASSIGNMENT, metadata)
        logger.info(f"Assignment {metadata['deleted_assignment_id']} removed by {actor.id}")

    async def get(self, assignment_id: int) -> FacultyCourseAssignment:
        result = await self.db.execute(
            select(FacultyCourseAssignment)
            .options(selectinload(FacultyCourseAssignment.course))
            .where(FacultyCourseAssignment.id == assignment_id)
        )
        assignment = result.scalar_one_or_none()
        if assignment is None:
            raise NotFoundError("Faculty-course assignment", assignment_id, code=ErrorCode.ASSIGNMENT_NOT_FOUND)
        return assignment

    async def list(self, faculty_id: Optional[int] = None, course_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Newest assignment first"""
        stmt = select(FacultyCourseAssignment).options(selectinload(FacultyCourseAssignment.course))
        if faculty_id is not None:
            stmt = stmt.where(FacultyCourseAssignment.faculty_id == faculty_id)
        if course_id is not None:
            stmt = stmt.where(FacultyCourseAssignment.course_id == course_id)
        stmt = stmt.order_by(FacultyCourseAssignment.assigned_at.desc(), FacultyCourseAssignment.id.desc())

        result = await self.db.execute(stmt)
        return [serialize_assignment(a, include_course=True) for a in result.scalars().all()]

    async def list_course_faculty(self, course_id: int) -> List[Dict[str, Any]]:
        await require_course(self.db, course_id)
        result = await self.db.execute(
            select(FacultyCourseAssignment)
            .where(FacultyCourseAssignment.course_id == course_id)
            .order_by(FacultyCourseAssignment.assigned_at.desc(), FacultyCourseAssignment.id.desc())
        )
        return [
            {
                **a.faculty.to_summary(),
                "assigned_at": a.assigned_at.isoformat() if a.assigned_at else None,
                "assignment_id": a.id,
            }
            for a in result.scalars().all()
        ]

    async def _create_pairs(self, pairs: List[tuple]) -> tuple:
        """
        Commit each (faculty_id, course_id) pair on its own.

        Returns (created, raced) where `raced` holds the pairs another
        writer inserted between our read and our write.
        """
        created: List[Dict[str, Any]] = []
        raced: List[tuple] = []
        for faculty_id, course_id in pairs:
            assignment = FacultyCourseAssignment(faculty_id=faculty_id, course_id=course_id)
            self.db.add(assignment)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.info(f"Pair faculty={faculty_id} course={course_id} created concurrently - skipped")
                raced.append((faculty_id, course_id))
                continue
            created.append({
                "id": assignment.id,
                "faculty_id": faculty_id,
                "course_id": course_id,
                "assigned_at": assignment.assigned_at.isoformat() if assignment.assigned_at else None,
            })
        return created, raced

    async def bulk_assign_courses_to_faculty(self, actor: User, faculty_id: int, course_ids: List[int]) -> Dict[str, Any]:
        actor_id = actor.id
        faculty = await require_faculty_user(self.db, faculty_id)
        faculty_name = faculty.name
        course_ids = _dedupe(course_ids)

        found = set((await self.db.execute(
            select(Course.id).where(Course.id.in_(course_ids))
        )).scalars().all())
        missing = [cid for cid in course_ids if cid not in found]
        if missing:
            raise NotFoundError(
                "One or more courses",
                code=ErrorCode.COURSE_NOT_FOUND,
                details={"missing_ids": missing}
            )

        existing = set((await self.db.execute(
            select(FacultyCourseAssignment.course_id).where(
                FacultyCourseAssignment.faculty_id == faculty_id,
                FacultyCourseAssignment.course_id.in_(course_ids),
            )
        )).scalars().all())
        new_ids = [cid for cid in course_ids if cid not in existing]

        created, raced = await self._create_pairs([(faculty_id, cid) for cid in new_ids])
        raced_ids = {course_id for _, course_id in raced}
        already = [cid for cid in course_ids if cid in existing or cid in raced_ids]

        # Pairs commit one by one, so the bulk entry gets a transaction of its own.
        async with atomic(self.db):
            self.audit.record(actor_id, Action.BULK_ASSIGN_COURSES_TO_FACULTY, {
                "faculty_id": faculty_id,
                "faculty_name": faculty_name,
                "assigned_course_count": len(created),
                "skipped_course_count": len(already),
                "assigned_course_ids": [a["course_id"] for a in created],
            })

        return {
            "message": (
                f"Successfully assigned {len(created)} courses to faculty, "
                f"{len(already)} were already assigned"
            ),
            "created_count": len(created),
            "created": created,
            "already_assigned_ids": already,
        }

    async def bulk_assign_faculty_to_course(self, actor: User, course_id: int, faculty_ids: List[int]) -> Dict[str, Any]:
        actor_id = actor.id
        course = await require_course(self.db, course_id)
        course_name, course_code = course.name, course.code
        faculty_ids = _dedupe(faculty_ids)

        found = set((await self.db.execute(
            select(User.id).where(User.id.in_(faculty_ids), User.role == UserRole.FACULTY)
        )).scalars().all())
        missing = [fid for fid in faculty_ids if fid not in found]
        if missing:
            raise NotFoundError(
                "One or more faculty",
                code=ErrorCode.USER_NOT_FOUND,
                details={"missing_ids": missing}
            )

        existing = set((await self.db.execute(
            select(FacultyCourseAssignment.faculty_id).where(
                FacultyCourseAssignment.course_id == course_id,
                FacultyCourseAssignment.faculty_id.in_(faculty_ids),
            )
        )).scalars().all())
        new_ids = [fid for fid in faculty_ids if fid not in existing]

        created, raced = await self._create_pairs([(fid, course_id) for fid in new_ids])
        raced_ids = {faculty_id for faculty_id, _ in raced}
        already = [fid for fid in faculty_ids if fid in existing or fid in raced_ids]

        # Pairs commit one by one, so the bulk entry gets a transaction of its own.
        async with atomic(self.db):
            self.audit.record(actor_id, Action.BULK_ASSIGN_FACULTY_TO_COURSE, {
                "course_id": course_id,
                "course_name": course_name,
                "course_code": course_code,
                "assigned_faculty_count": len(created),
                "skipped_faculty_count": len(already),
                "assigned_faculty_ids": [a["faculty_id"] for a in created],
            })

        return {
            "message": (
                f"Successfully assigned {len(created)} faculty to the course, "
                f"{len(already)} were already assigned"
            ),
            "created_count": len(created),
            "created": created,
            "already_assigned_ids": already,
        }
