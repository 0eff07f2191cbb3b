"""
academia/orm/clo.py
Course Learning Outcomes
"""
from sqlalchemy import Column, Integer, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from academia.orm.base import BaseModel


class CLO(BaseModel):
    """A numbered learning outcome. Numbers are unique within a course."""
    __tablename__ = "clos"
    __table_args__ = (
        UniqueConstraint("course_id", "number", name="uq_clo_course_number"),
    )

    description = Column(Text, nullable=False)
    number = Column(Integer, nullable=False)
    course_id = Column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    course = relationship("Course", back_populates="clos")

    def __repr__(self):
        return f"<CLO(course={self.course_id}, number={self.number})>"
