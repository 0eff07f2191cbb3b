"""
academia/routes/departments.py
"""
from fastapi import APIRouter, Depends, status

from academia.dependencies import get_department_service
from academia.orm.user import User
from academia.rbac import require_policy
from academia.schemas.course import DepartmentCreate
from academia.services.department_service import DepartmentService

router = APIRouter(prefix="/departments", tags=["Departments"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_department(
    payload: DepartmentCreate,
    current_user: User = Depends(require_policy("department:create")),
    service: DepartmentService = Depends(get_department_service),
):
    return await service.create(current_user, payload)


@router.get("")
async def list_departments(
    current_user: User = Depends(require_policy("department:read")),
    service: DepartmentService = Depends(get_department_service),
):
    return await service.list()
