"""
academia/services/clo_service.py
CLO registry: numbered learning outcomes attached to a course
"""
import logging
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academia.errors import BadRequestError, ConflictError, ErrorCode, NotFoundError
from academia.orm.clo import CLO
from academia.orm.user import User
from academia.schemas.course import CLOCreate, CLOUpdate
from academia.services.activity_logger import Action, ActivityLogger
from academia.services.assignment_service import require_course
from academia.services.serializers import serialize_clo
from academia.services.transaction import atomic

logger = logging.getLogger(__name__)

NUMBER_TAKEN = "A CLO with this number already exists for the course"


class CLOService:

    def __init__(self, db: AsyncSession, audit: ActivityLogger):
        self.db = db
        self.audit = audit

    async def _number_taken(self, course_id: int, number: int) -> bool:
        result = await self.db.execute(
            select(CLO.id).where(CLO.course_id == course_id, CLO.number == number)
        )
        return result.scalar_one_or_none() is not None

    async def get(self, clo_id: int) -> CLO:
        clo = await self.db.get(CLO, clo_id)
        if clo is None:
            raise NotFoundError("CLO", clo_id, code=ErrorCode.CLO_NOT_FOUND)
        return clo

    async def create(self, actor: User, data: CLOCreate) -> Dict[str, Any]:
        await require_course(self.db, data.course_id)
        if await self._number_taken(data.course_id, data.number):
            raise ConflictError(NUMBER_TAKEN, code=ErrorCode.CLO_NUMBER_TAKEN)

        async with atomic(self.db, NUMBER_TAKEN, ErrorCode.CLO_NUMBER_TAKEN):
            clo = CLO(course_id=data.course_id, number=data.number, description=data.description)
            self.db.add(clo)
            await self.db.flush()
            self.audit.record(actor.id, Action.CREATE_CLO, {
                "clo_id": clo.id,
                "course_id": clo.course_id,
                "number": clo.number,
            })

        logger.info(f"CLO {clo.number} added to course {clo.course_id} by {actor.id}")
        return serialize_clo(clo)

    async def update(self, actor: User, clo_id: int, data: CLOUpdate) -> Dict[str, Any]:
        clo = await self.get(clo_id)
        fields = data.model_dump(exclude_unset=True)
        for key in ("number", "description"):
            if key in fields and fields[key] is None:
                raise BadRequestError(f"{key} cannot be null", details={"field": key})

        new_number = fields.get("number")
        if new_number is not None and new_number != clo.number:
            if await self._number_taken(clo.course_id, new_number):
                raise ConflictError(NUMBER_TAKEN, code=ErrorCode.CLO_NUMBER_TAKEN)

        async with atomic(self.db, NUMBER_TAKEN, ErrorCode.CLO_NUMBER_TAKEN):
            for key, value in fields.items():
                setattr(clo, key, value)
            await self.db.flush()
            self.audit.record(actor.id, Action.UPDATE_CLO, {
                "clo_id": clo.id,
                "course_id": clo.course_id,
                "fields": sorted(fields.keys()),
            })

        return serialize_clo(clo)

    async def delete(self, actor: User, clo_id: int) -> None:
        clo = await self.get(clo_id)
        metadata = {"clo_id": clo.id, "course_id": clo.course_id, "number": clo.number}
        async with atomic(self.db):
            await self.db.delete(clo)
            self.audit.record(actor.id, Action.DELETE_CLO, metadata)
        logger.info(f"CLO {metadata['clo_id']} deleted by {actor.id}")

    async def list_by_course(self, course_id: int) -> List[Dict[str, Any]]:
        """CLOs of one course ordered by number"""
        await require_course(self.db, course_id)
        result = await self.db.execute(
            select(CLO).where(CLO.course_id == course_id).order_by(CLO.number.asc())
        )
        return [serialize_clo(clo) for clo in result.scalars().all()]
