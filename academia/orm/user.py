"""
academia/orm/user.py
Identity model: administrators and faculty members
"""
from enum import Enum

from sqlalchemy import Column, String, Enum as SQLEnum
from sqlalchemy.orm import relationship

from academia.orm.base import BaseModel


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    FACULTY = "FACULTY"


class User(BaseModel):
    """
    A person who can sign in.

    Email is globally unique. The role decides which operations the access
    gate lets through; it can only be changed by an ADMIN.
    """
    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.FACULTY, index=True)

    course_assignments = relationship(
        "FacultyCourseAssignment",
        back_populates="faculty",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    contents = relationship(
        "Content",
        back_populates="author",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_faculty(self) -> bool:
        return self.role == UserRole.FACULTY

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value if self.role else None,
        }

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
