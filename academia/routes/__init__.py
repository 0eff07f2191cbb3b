"""
academia/routes/__init__.py
Aggregates every resource router under one APIRouter
"""
from fastapi import APIRouter

from academia.routes import assignments, auth, clos, content, courses, departments, users

router = APIRouter()

router.include_router(auth.router)
router.include_router(users.router)
router.include_router(departments.router)
router.include_router(courses.router)
router.include_router(assignments.router)
router.include_router(clos.router)
router.include_router(content.router)

__all__ = ["router"]
