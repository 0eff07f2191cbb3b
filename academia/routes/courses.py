"""
academia/routes/courses.py
Course catalog endpoints and the course-side faculty links
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from academia.dependencies import get_assignment_service, get_course_service
from academia.orm.user import User
from academia.rbac import require_policy
from academia.schemas.course import CourseCreate, CourseUpdate, FacultyCourseLink
from academia.services.assignment_service import AssignmentService
from academia.services.course_service import CourseService
from academia.services.serializers import serialize_course

router = APIRouter(prefix="/courses", tags=["Courses"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_course(
    payload: CourseCreate,
    current_user: User = Depends(require_policy("course:create")),
    service: CourseService = Depends(get_course_service),
):
    """Create a course together with its initial CLOs and optional faculty link"""
    return await service.create_course(current_user, payload)


@router.get("")
async def list_courses(
    department_id: Optional[int] = None,
    code: Optional[str] = Query(None, description="Case-insensitive substring match"),
    name: Optional[str] = Query(None, description="Case-insensitive substring match"),
    current_user: User = Depends(require_policy("course:read")),
    service: CourseService = Depends(get_course_service),
):
    return await service.list_courses(department_id=department_id, code=code, name=name)


@router.post("/assign-faculty", status_code=status.HTTP_201_CREATED)
async def assign_faculty(
    payload: FacultyCourseLink,
    current_user: User = Depends(require_policy("assignment:create")),
    service: AssignmentService = Depends(get_assignment_service),
):
    return await service.assign(current_user, payload.faculty_id, payload.course_id)


@router.post("/remove-faculty")
async def remove_faculty(
    payload: FacultyCourseLink,
    current_user: User = Depends(require_policy("assignment:delete")),
    service: AssignmentService = Depends(get_assignment_service),
):
    await service.remove(current_user, payload.faculty_id, payload.course_id)
    return {"message": "Faculty removed from course successfully"}


@router.get("/{course_id}")
async def get_course(
    course_id: int,
    current_user: User = Depends(require_policy("course:read")),
    service: CourseService = Depends(get_course_service),
):
    course = await service.get_course(course_id, include_contents=True)
    return serialize_course(course, include_contents=True)


@router.put("/{course_id}")
async def update_course(
    course_id: int,
    payload: CourseUpdate,
    current_user: User = Depends(require_policy("course:update")),
    service: CourseService = Depends(get_course_service),
):
    return await service.update_course(current_user, course_id, payload)


@router.delete("/{course_id}")
async def delete_course(
    course_id: int,
    current_user: User = Depends(require_policy("course:delete")),
    service: CourseService = Depends(get_course_service),
):
    return await service.delete_course(current_user, course_id)
