"""
academia/schemas/auth.py
Authentication and user management schemas
"""
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from academia.orm.user import UserRole


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=1, max_length=200)
    role: Optional[UserRole] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserCreate(UserRegister):
    """Admin-side account creation"""


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    role: Optional[UserRole] = None

