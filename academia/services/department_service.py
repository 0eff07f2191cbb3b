"""
academia/services/department_service.py
Department catalog
"""
import logging
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academia.errors import ConflictError, ErrorCode
from academia.orm.department import Department
from academia.orm.user import User
from academia.schemas.course import DepartmentCreate
from academia.services.activity_logger import Action, ActivityLogger
from academia.services.transaction import atomic

logger = logging.getLogger(__name__)

CODE_TAKEN = "Department with this code already exists"


def serialize_department(department: Department) -> Dict[str, Any]:
    return {
        "id": department.id,
        "name": department.name,
        "code": department.code,
        "description": department.description,
    }


class DepartmentService:

    def __init__(self, db: AsyncSession, audit: ActivityLogger):
        self.db = db
        self.audit = audit

    async def create(self, actor: User, data: DepartmentCreate) -> Dict[str, Any]:
        code = data.code.strip().upper()
        existing = await self.db.execute(select(Department.id).where(Department.code == code))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(CODE_TAKEN, code=ErrorCode.DEPARTMENT_CODE_TAKEN)

        async with atomic(self.db, CODE_TAKEN, ErrorCode.DEPARTMENT_CODE_TAKEN):
            department = Department(name=data.name, code=code, description=data.description)
            self.db.add(department)
            await self.db.flush()
            self.audit.record(actor.id, Action.CREATE_DEPARTMENT, {
                "department_id": department.id,
                "code": department.code,
            })

        logger.info(f"Department {department.code} created by {actor.id}")
        return serialize_department(department)

    async def list(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(select(Department).order_by(Department.code.asc()))
        return [serialize_department(d) for d in result.scalars().all()]
