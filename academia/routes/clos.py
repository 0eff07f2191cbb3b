"""
academia/routes/clos.py
CLO registry endpoints
"""
from fastapi import APIRouter, Depends, Response, status

from academia.dependencies import get_clo_service
from academia.orm.user import User
from academia.rbac import require_policy
from academia.schemas.course import CLOCreate, CLOUpdate
from academia.services.clo_service import CLOService
from academia.services.serializers import serialize_clo

router = APIRouter(prefix="/clos", tags=["CLOs"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_clo(
    payload: CLOCreate,
    current_user: User = Depends(require_policy("clo:create")),
    service: CLOService = Depends(get_clo_service),
):
    return await service.create(current_user, payload)


@router.get("/course/{course_id}")
async def list_course_clos(
    course_id: int,
    current_user: User = Depends(require_policy("clo:read")),
    service: CLOService = Depends(get_clo_service),
):
    return await service.list_by_course(course_id)


@router.get("/{clo_id}")
async def get_clo(
    clo_id: int,
    current_user: User = Depends(require_policy("clo:read")),
    service: CLOService = Depends(get_clo_service),
):
    return serialize_clo(await service.get(clo_id))


@router.put("/{clo_id}")
async def update_clo(
    clo_id: int,
    payload: CLOUpdate,
    current_user: User = Depends(require_policy("clo:update")),
    service: CLOService = Depends(get_clo_service),
):
    return await service.update(current_user, clo_id, payload)


@router.delete("/{clo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_clo(
    clo_id: int,
    current_user: User = Depends(require_policy("clo:delete")),
    service: CLOService = Depends(get_clo_service),
):
    await service.delete(current_user, clo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
