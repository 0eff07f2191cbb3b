"""
academia/routes/auth.py
Registration, login and the current identity
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from academia.dependencies import get_user_service
from academia.limits import auth_limit, limiter
from academia.orm.user import User
from academia.rbac import create_access_token, get_current_user, get_current_user_optional
from academia.schemas.auth import UserLogin, UserRegister
from academia.services.serializers import serialize_user
from academia.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _token_response(request: Request, user: User) -> dict:
    return {
        "access_token": create_access_token(user, request.app.state.settings),
        "token_type": "bearer",
        "user": serialize_user(user),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(auth_limit)
async def register(
    request: Request,
    payload: UserRegister,
    caller: Optional[User] = Depends(get_current_user_optional),
    service: UserService = Depends(get_user_service),
):
    """
    Register a new account. Accounts are FACULTY unless an authenticated
    ADMIN asks for an ADMIN account.
    """
    user = await service.register(payload, caller)
    return _token_response(request, user)


@router.post("/login")
@limiter.limit(auth_limit)
async def login(
    request: Request,
    payload: UserLogin,
    service: UserService = Depends(get_user_service),
):
    user = await service.authenticate(payload.email, payload.password)
    logger.info(f"User {user.id} logged in")
    return _token_response(request, user)


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return serialize_user(current_user)
