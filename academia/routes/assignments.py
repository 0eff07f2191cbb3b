"""
academia/routes/assignments.py
Assignment ledger endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from academia.dependencies import get_assignment_service, get_course_service
from academia.orm.user import User
from academia.rbac import enforce_ownership, require_policy
from academia.schemas.course import BulkCoursesToFaculty, BulkFacultyToCourse, FacultyCourseLink
from academia.services.assignment_service import AssignmentService
from academia.services.course_service import CourseService
from academia.services.serializers import serialize_assignment

router = APIRouter(prefix="/assignments", tags=["Assignments"])


@router.get("")
async def list_assignments(
    faculty_id: Optional[int] = None,
    course_id: Optional[int] = None,
    current_user: User = Depends(require_policy("assignment:list")),
    service: AssignmentService = Depends(get_assignment_service),
):
    return await service.list(faculty_id=faculty_id, course_id=course_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_assignment(
    payload: FacultyCourseLink,
    current_user: User = Depends(require_policy("assignment:create")),
    service: AssignmentService = Depends(get_assignment_service),
):
    return await service.assign(current_user, payload.faculty_id, payload.course_id)


@router.post("/bulk/courses-to-faculty")
async def bulk_courses_to_faculty(
    payload: BulkCoursesToFaculty,
    current_user: User = Depends(require_policy("assignment:bulk")),
    service: AssignmentService = Depends(get_assignment_service),
):
    return await service.bulk_assign_courses_to_faculty(current_user, payload.faculty_id, payload.course_ids)


@router.post("/bulk/faculty-to-course")
async def bulk_faculty_to_course(
    payload: BulkFacultyToCourse,
    current_user: User = Depends(require_policy("assignment:bulk")),
    service: AssignmentService = Depends(get_assignment_service),
):
    return await service.bulk_assign_faculty_to_course(current_user, payload.course_id, payload.faculty_ids)


@router.get("/faculty/{faculty_id}/courses")
async def faculty_courses(
    faculty_id: int,
    current_user: User = Depends(require_policy("assignment:read")),
    service: CourseService = Depends(get_course_service),
):
    enforce_ownership("assignment:read", current_user, faculty_id, "assignment")
    return await service.get_courses_by_faculty(faculty_id)


@router.get("/course/{course_id}/faculty")
async def course_faculty(
    course_id: int,
    current_user: User = Depends(require_policy("assignment:course_faculty")),
    service: AssignmentService = Depends(get_assignment_service),
):
    return await service.list_course_faculty(course_id)


@router.get("/{assignment_id}")
async def get_assignment(
    assignment_id: int,
    current_user: User = Depends(require_policy("assignment:read")),
    service: AssignmentService = Depends(get_assignment_service),
):
    assignment = await service.get(assignment_id)
    enforce_ownership("assignment:read", current_user, assignment.faculty_id, "assignment")
    return serialize_assignment(assignment, include_course=True)


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assignment(
    assignment_id: int,
    current_user: User = Depends(require_policy("assignment:delete")),
    service: AssignmentService = Depends(get_assignment_service),
):
    await service.remove_by_id(current_user, assignment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
