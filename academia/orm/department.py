"""
academia/orm/department.py
Academic departments that group courses
"""
from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from academia.orm.base import BaseModel


class Department(BaseModel):
    __tablename__ = "departments"

    name = Column(String(200), nullable=False)
    code = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)

    courses = relationship("Course", back_populates="department")

    def __repr__(self):
        return f"<Department(id={self.id}, code='{self.code}')>"
