"""
academia/routes/users.py
ADMIN user management, plus per-user course and activity views
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from academia.dependencies import get_activity_logger, get_course_service, get_user_service
from academia.orm.user import User, UserRole
from academia.rbac import enforce_ownership, require_policy
from academia.schemas.auth import UserCreate, UserUpdate
from academia.services.activity_logger import ActivityLogger
from academia.services.course_service import CourseService
from academia.services.serializers import serialize_user
from academia.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
async def list_users(
    role: Optional[UserRole] = None,
    current_user: User = Depends(require_policy("user:list")),
    service: UserService = Depends(get_user_service),
):
    return await service.list_users(role)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    current_user: User = Depends(require_policy("user:create")),
    service: UserService = Depends(get_user_service),
):
    return serialize_user(await service.create_user(current_user, payload))


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    current_user: User = Depends(require_policy("user:read")),
    service: UserService = Depends(get_user_service),
):
    return await service.get_user_detail(user_id)


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    payload: UserUpdate,
    current_user: User = Depends(require_policy("user:update")),
    service: UserService = Depends(get_user_service),
):
    return serialize_user(await service.update_user(current_user, user_id, payload))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_policy("user:delete")),
    service: UserService = Depends(get_user_service),
):
    await service.delete_user(current_user, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}/courses")
async def get_user_courses(
    user_id: int,
    current_user: User = Depends(require_policy("user:courses")),
    service: CourseService = Depends(get_course_service),
):
    """Courses a faculty member is assigned to (self or ADMIN)"""
    enforce_ownership("user:courses", current_user, user_id, "account")
    return await service.get_courses_by_faculty(user_id)


@router.get("/{user_id}/activity")
async def get_user_activity(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(require_policy("user:activity")),
    audit: ActivityLogger = Depends(get_activity_logger),
    service: UserService = Depends(get_user_service),
):
    """Paginated activity log of one user, newest first (self or ADMIN)"""
    enforce_ownership("user:activity", current_user, user_id, "account")
    await service.get(user_id)
    return await audit.list_by_user(user_id, page=page, limit=limit)
