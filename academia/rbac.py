"""
academia/rbac.py
Role-Based Access Control (RBAC)

Every request that touches a resource goes through this module first:

1. get_current_user resolves the bearer token to a User (401 otherwise).
2. require_policy(operation) checks the caller's role against POLICIES
   (403 otherwise) and attaches the identity to request.state.actor.
3. enforce_ownership(operation, actor, owner_id) evaluates the ownership
   half of the same policy for resources that belong to one user.

Role checks live in the POLICIES table only; routes name an operation and
never compare roles themselves.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, FrozenSet, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from academia.config import Settings
from academia.database import get_db
from academia.errors import ErrorCode, ForbiddenError, UnauthorizedError
from academia.orm.user import User, UserRole

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=10,
)
# auto_error=False so a missing token produces our own 401 body
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# ================= POLICY TABLE =================

ANY_ROLE: FrozenSet[UserRole] = frozenset(UserRole)
ADMIN_ONLY: FrozenSet[UserRole] = frozenset({UserRole.ADMIN})
FACULTY_ONLY: FrozenSet[UserRole] = frozenset({UserRole.FACULTY})


@dataclass(frozen=True)
class Policy:
    """
    roles: who may invoke the operation at all.
    ownership: when True, a non-ADMIN caller must also own the resource.
    """
    roles: FrozenSet[UserRole]
    ownership: bool = False


POLICIES: Dict[str, Policy] = {
    # Identity
    "user:list": Policy(ADMIN_ONLY),
    "user:read": Policy(ADMIN_ONLY),
    "user:create": Policy(ADMIN_ONLY),
    "user:update": Policy(ADMIN_ONLY),
    "user:delete": Policy(ADMIN_ONLY),
    "user:courses": Policy(ANY_ROLE, ownership=True),
    "user:activity": Policy(ANY_ROLE, ownership=True),

    # Departments
    "department:create": Policy(ADMIN_ONLY),
    "department:read": Policy(ANY_ROLE),

    # Course catalog
    "course:create": Policy(ADMIN_ONLY),
    "course:read": Policy(ANY_ROLE),
    "course:update": Policy(ADMIN_ONLY),
    "course:delete": Policy(ADMIN_ONLY),

    # Assignment ledger
    "assignment:create": Policy(ADMIN_ONLY),
    "assignment:delete": Policy(ADMIN_ONLY),
    "assignment:bulk": Policy(ADMIN_ONLY),
    "assignment:list": Policy(ADMIN_ONLY),
    "assignment:read": Policy(ANY_ROLE, ownership=True),
    "assignment:course_faculty": Policy(ANY_ROLE),

    # CLO registry
    "clo:create": Policy(ADMIN_ONLY),
    "clo:read": Policy(ANY_ROLE),
    "clo:update": Policy(ADMIN_ONLY),
    "clo:delete": Policy(ADMIN_ONLY),

    # Content repository
    "content:create": Policy(ANY_ROLE),
    "content:list": Policy(ANY_ROLE),
    "content:list_course": Policy(ANY_ROLE),
    "content:read": Policy(ANY_ROLE, ownership=True),
    "content:update": Policy(ANY_ROLE, ownership=True),
    "content:delete": Policy(ANY_ROLE, ownership=True),
    "content:generate": Policy(FACULTY_ONLY),
}


def get_policy(operation: str) -> Policy:
    policy = POLICIES.get(operation)
    if policy is None:
        # A route naming an unknown operation is a programming error
        raise KeyError(f"No access policy defined for '{operation}'")
    return policy


# ================= PASSWORDS =================

def normalize_password(password: str) -> str:
    """
    bcrypt only supports 72 bytes.
    Truncate AFTER UTF-8 encoding to preserve compatibility.
    """
    encoded = password.encode("utf-8")
    if len(encoded) > 72:
        encoded = encoded[:72]
    return encoded.decode("utf-8", errors="ignore")


def hash_password(password: str) -> str:
    return pwd_context.hash(normalize_password(password))


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(normalize_password(plain), hashed)


async def hash_password_async(password: str) -> str:
    """bcrypt blocks; keep it off the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, hash_password, password)


async def verify_password_async(plain: str, hashed: str) -> bool:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, verify_password, plain, hashed)


# ================= TOKEN UTILS =================

def create_access_token(user: User, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token carrying the user id and role"""
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode = {
        "sub": str(user.id),
        "role": user.role.value,
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> Dict[str, Any]:
    """Decode and validate a JWT, raising 401 on any failure"""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise UnauthorizedError("Token has expired", code=ErrorCode.AUTH_EXPIRED)
    except JWTError:
        raise UnauthorizedError("Invalid or expired token", code=ErrorCode.AUTH_INVALID)


# ================= AUTH DEPENDENCIES =================

async def _resolve_user(token: Optional[str], request: Request, db: AsyncSession) -> User:
    if not token:
        raise UnauthorizedError()

    payload = decode_token(token, request.app.state.settings)
    if payload.get("type") != "access":
        raise UnauthorizedError("Invalid token type", code=ErrorCode.AUTH_INVALID)

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token payload", code=ErrorCode.AUTH_INVALID)

    user = await db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found", code=ErrorCode.AUTH_INVALID)
    return user


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get current authenticated user from the bearer token.
    Returns 401 if the token is missing, invalid, expired or orphaned.
    """
    user = await _resolve_user(token, request, db)
    request.state.actor = user
    return user


async def get_current_user_optional(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Current user if a valid token was sent, otherwise None."""
    if not token:
        return None
    try:
        return await _resolve_user(token, request, db)
    except UnauthorizedError:
        return None


def require_policy(operation: str):
    """
    Dependency factory: resolve the caller and check the role half of the
    operation's policy.

    Usage:
        current_user: User = Depends(require_policy("course:create"))
    """
    policy = get_policy(operation)

    async def dependency(request: Request, current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in policy.roles:
            logger.warning(
                f"Access denied: User {current_user.id} with role {current_user.role.value} "
                f"attempted '{operation}'"
            )
            raise ForbiddenError(
                f"You do not have permission to perform {operation}",
                code=ErrorCode.PERMISSION_DENIED,
                details={"required_roles": sorted(r.value for r in policy.roles)}
            )
        request.state.operation = operation
        return current_user

    return dependency


def enforce_ownership(operation: str, actor: User, owner_id: Optional[int], resource_name: str = "resource") -> None:
    """
    Ownership half of the policy: ADMIN passes, otherwise the actor must be
    the owner.
    """
    policy = get_policy(operation)
    if not policy.ownership or actor.role == UserRole.ADMIN:
        return
    if owner_id is None or actor.id != owner_id:
        logger.warning(
            f"Ownership denied: User {actor.id} attempted '{operation}' on {resource_name} owned by {owner_id}"
        )
        raise ForbiddenError(
            f"This {resource_name} does not belong to you",
            code=ErrorCode.OWNERSHIP_VIOLATION
        )
