"""
academia/routes/content.py
Content repository endpoints: quizzes, assignments and exams
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from academia.dependencies import get_content_service
from academia.orm.user import User
from academia.rbac import require_policy
from academia.schemas.content import ContentCreate, ContentUpdate, GenerateRequest, QuestionAdd
from academia.services.content_service import ContentService

router = APIRouter(prefix="/content", tags=["Content"])


@router.get("")
async def list_my_content(
    current_user: User = Depends(require_policy("content:list")),
    service: ContentService = Depends(get_content_service),
):
    """Content authored by the caller, newest first"""
    return await service.list_by_faculty(current_user.id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_content(
    payload: ContentCreate,
    current_user: User = Depends(require_policy("content:create")),
    service: ContentService = Depends(get_content_service),
):
    return await service.create(current_user, payload)


@router.post("/generate/ai")
async def generate_content(
    payload: GenerateRequest,
    current_user: User = Depends(require_policy("content:generate")),
    service: ContentService = Depends(get_content_service),
):
    """Generate questions for review. Nothing is saved."""
    return await service.generate(current_user, payload.type, payload.course_id)


@router.get("/course/{course_id}")
async def list_course_content(
    course_id: int,
    type: Optional[str] = Query(None, description="QUIZ, ASSIGNMENT or EXAM"),
    current_user: User = Depends(require_policy("content:list_course")),
    service: ContentService = Depends(get_content_service),
):
    return await service.list_by_course(current_user, course_id, type)


@router.get("/{content_id}")
async def get_content(
    content_id: int,
    current_user: User = Depends(require_policy("content:read")),
    service: ContentService = Depends(get_content_service),
):
    return await service.get(current_user, content_id)


@router.put("/{content_id}")
async def update_content(
    content_id: int,
    payload: ContentUpdate,
    current_user: User = Depends(require_policy("content:update")),
    service: ContentService = Depends(get_content_service),
):
    return await service.update(current_user, content_id, payload)


@router.delete("/{content_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_content(
    content_id: int,
    current_user: User = Depends(require_policy("content:delete")),
    service: ContentService = Depends(get_content_service),
):
    await service.delete(current_user, content_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{content_id}/questions")
async def add_question(
    content_id: int,
    payload: QuestionAdd,
    current_user: User = Depends(require_policy("content:update")),
    service: ContentService = Depends(get_content_service),
):
    return await service.add_question(current_user, content_id, payload.question)


@router.delete("/{content_id}/questions/{index}")
async def remove_question(
    content_id: int,
    index: int,
    current_user: User = Depends(require_policy("content:update")),
    service: ContentService = Depends(get_content_service),
):
    return await service.remove_question(current_user, content_id, index)
