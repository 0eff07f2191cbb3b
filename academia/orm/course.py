"""
academia/orm/course.py
Course model with its learning outcomes, faculty links and content
"""
from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship

from academia.orm.base import BaseModel


class Course(BaseModel):
    """
    A course in the catalog.

    The code is globally unique. CLOs, faculty assignments and content all
    belong to exactly one course and go away with it.
    """
    __tablename__ = "courses"

    name = Column(String(200), nullable=False)
    code = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    credit_hours = Column(Integer, nullable=False, default=3)

    department_id = Column(
        Integer,
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    department = relationship("Department", back_populates="courses", lazy="selectin")

    clos = relationship(
        "CLO",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CLO.number",
        lazy="selectin",
    )

    faculty_assignments = relationship(
        "FacultyCourseAssignment",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    contents = relationship(
        "Content",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_summary(self) -> dict:
        return {"id": self.id, "name": self.name, "code": self.code}

    def __repr__(self):
        return f"<Course(id={self.id}, code='{self.code}')>"
