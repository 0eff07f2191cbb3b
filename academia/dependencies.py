"""
academia/dependencies.py
FastAPI dependency providers for the service layer

Each request gets services bound to its own session. The content generator
is process-wide and lives on app.state so tests can swap it out.
"""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from academia.database import get_db
from academia.services.activity_logger import ActivityLogger
from academia.services.assignment_service import AssignmentService
from academia.services.clo_service import CLOService
from academia.services.content_generator import ContentGenerator
from academia.services.content_service import ContentService
from academia.services.course_service import CourseService
from academia.services.department_service import DepartmentService
from academia.services.user_service import UserService


def get_activity_logger(db: AsyncSession = Depends(get_db)) -> ActivityLogger:
    return ActivityLogger(db)


def get_content_generator(request: Request) -> ContentGenerator:
    return request.app.state.content_generator


def get_user_service(
    db: AsyncSession = Depends(get_db),
    audit: ActivityLogger = Depends(get_activity_logger),
) -> UserService:
    return UserService(db, audit)


def get_department_service(
    db: AsyncSession = Depends(get_db),
    audit: ActivityLogger = Depends(get_activity_logger),
) -> DepartmentService:
    return DepartmentService(db, audit)


def get_course_service(
    db: AsyncSession = Depends(get_db),
    audit: ActivityLogger = Depends(get_activity_logger),
) -> CourseService:
    return CourseService(db, audit)


def get_assignment_service(
    db: AsyncSession = Depends(get_db),
    audit: ActivityLogger = Depends(get_activity_logger),
) -> AssignmentService:
    return AssignmentService(db, audit)


def get_clo_service(
    db: AsyncSession = Depends(get_db),
    audit: ActivityLogger = Depends(get_activity_logger),
) -> CLOService:
    return CLOService(db, audit)


def get_content_service(
    db: AsyncSession = Depends(get_db),
    audit: ActivityLogger = Depends(get_activity_logger),
    generator: ContentGenerator = Depends(get_content_generator),
) -> ContentService:
    return ContentService(db, audit, generator)
