"""
academia/services/user_service.py
Identity & role store: registration, login and ADMIN user management
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from academia.errors import BadRequestError, ConflictError, ErrorCode, ForbiddenError, NotFoundError, UnauthorizedError
from academia.orm.activity_log import ActivityLog
from academia.orm.content import Content
from academia.orm.course import Course
from academia.orm.faculty_assignment import FacultyCourseAssignment
from academia.orm.user import User, UserRole
from academia.rbac import hash_password_async, verify_password_async
from academia.schemas.auth import UserCreate, UserRegister, UserUpdate
from academia.services.activity_logger import Action, ActivityLogger
from academia.services.serializers import serialize_user
from academia.services.transaction import atomic

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "Email already registered"


class UserService:

    def __init__(self, db: AsyncSession, audit: ActivityLogger):
        self.db = db
        self.audit = audit

    async def _find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id, code=ErrorCode.USER_NOT_FOUND)
        return user

    async def _insert(self, data: UserRegister, actor_id: Optional[int]) -> User:
        if await self._find_by_email(data.email) is not None:
            raise ConflictError(EMAIL_TAKEN, code=ErrorCode.EMAIL_TAKEN)

        password_hash = await hash_password_async(data.password)
        async with atomic(self.db, EMAIL_TAKEN, ErrorCode.EMAIL_TAKEN):
            user = User(
                email=data.email.lower(),
                name=data.name.strip(),
                password_hash=password_hash,
                role=data.role or UserRole.FACULTY,
            )
            self.db.add(user)
            await self.db.flush()
            self.audit.record(actor_id if actor_id is not None else user.id, Action.CREATE_USER, {
                "user_id": user.id,
                "email": user.email,
                "role": user.role.value,
            })

        logger.info(f"User {user.email} registered with role {user.role.value}")
        return user

    async def register(self, data: UserRegister, caller: Optional[User] = None) -> User:
        """
        Self-service registration. Accounts default to FACULTY; creating an
        ADMIN requires an authenticated ADMIN caller.
        """
        if data.role == UserRole.ADMIN and (caller is None or caller.role != UserRole.ADMIN):
            logger.warning(f"Rejected ADMIN registration for {data.email}")
            raise ForbiddenError(
                "Only an administrator can create administrator accounts",
                code=ErrorCode.PERMISSION_DENIED
            )
        return await self._insert(data, caller.id if caller else None)

    async def authenticate(self, email: str, password: str) -> User:
        user = await self._find_by_email(email)
        # Same error for unknown email and wrong password
        if user is None or not await verify_password_async(password, user.password_hash):
            logger.warning(f"Failed login attempt for {email}")
            raise UnauthorizedError("Invalid email or password", code=ErrorCode.INVALID_CREDENTIALS)
        return user

    async def create_user(self, actor: User, data: UserCreate) -> User:
        return await self._insert(data, actor.id)

    async def list_users(self, role: Optional[UserRole] = None) -> List[Dict[str, Any]]:
        stmt = select(User).order_by(User.created_at.desc(), User.id.desc())
        if role is not None:
            stmt = stmt.where(User.role == role)
        result = await self.db.execute(stmt)
        return [serialize_user(u) for u in result.scalars().all()]

    async def get_user_detail(self, user_id: int) -> Dict[str, Any]:
        """User with assigned courses and the number of authored content items"""
        user = await self.get(user_id)

        courses = (await self.db.execute(
            select(Course, FacultyCourseAssignment.assigned_at)
            .join(FacultyCourseAssignment, FacultyCourseAssignment.course_id == Course.id)
            .where(FacultyCourseAssignment.faculty_id == user_id)
            .order_by(FacultyCourseAssignment.assigned_at.desc())
        )).all()
        content_count = (await self.db.execute(
            select(func.count(Content.id)).where(Content.faculty_id == user_id)
        )).scalar() or 0

        return {
            **serialize_user(user),
            "courses": [
                {**course.to_summary(), "assigned_at": assigned_at.isoformat() if assigned_at else None}
                for course, assigned_at in courses
            ],
            "content_count": content_count,
        }

    async def update_user(self, actor: User, user_id: int, data: UserUpdate) -> User:
        user = await self.get(user_id)
        fields = data.model_dump(exclude_unset=True, exclude_none=True)

        if "email" in fields:
            fields["email"] = fields["email"].lower()
            if fields["email"] != user.email:
                other = await self._find_by_email(fields["email"])
                if other is not None and other.id != user.id:
                    raise ConflictError(EMAIL_TAKEN, code=ErrorCode.EMAIL_TAKEN)

        password = fields.pop("password", None)
        password_hash = await hash_password_async(password) if password else None

        async with atomic(self.db, EMAIL_TAKEN, ErrorCode.EMAIL_TAKEN):
            for key, value in fields.items():
                setattr(user, key, value)
            if password_hash:
                user.password_hash = password_hash
            await self.db.flush()
            changed = sorted(fields.keys()) + (["password"] if password_hash else [])
            self.audit.record(actor.id, Action.UPDATE_USER, {"user_id": user.id, "fields": changed})

        return user

    async def delete_user(self, actor: User, user_id: int) -> None:
        """Delete a user together with their assignments and authored content"""
        if actor.id == user_id:
            raise BadRequestError("You cannot delete your own account", details={"user_id": user_id})
        user = await self.get(user_id)
        metadata = {"user_id": user.id, "email": user.email, "role": user.role.value}

        async with atomic(self.db):
            await self.db.execute(
                delete(FacultyCourseAssignment).where(FacultyCourseAssignment.faculty_id == user_id)
            )
            await self.db.execute(delete(Content).where(Content.faculty_id == user_id))
            await self.db.execute(
                update(ActivityLog).where(ActivityLog.user_id == user_id).values(user_id=None)
            )
            await self.db.execute(delete(User).where(User.id == user_id))
            self.audit.record(actor.id, Action.DELETE_USER, metadata)

        logger.info(f"User {metadata['email']} deleted by {actor.id}")
