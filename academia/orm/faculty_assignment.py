"""
academia/orm/faculty_assignment.py
Link between a faculty member and a course they teach
"""
from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from academia.orm.base import Base


class FacultyCourseAssignment(Base):
    """
    A faculty member is linked to a given course at most once.
    Rows are created and deleted, never updated.
    """
    __tablename__ = "faculty_course_assignments"
    __table_args__ = (
        UniqueConstraint("faculty_id", "course_id", name="uq_faculty_course"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    faculty_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    course_id = Column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    assigned_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    faculty = relationship("User", back_populates="course_assignments", lazy="selectin")
    course = relationship("Course", back_populates="faculty_assignments")

    def __repr__(self):
        return f"<FacultyCourseAssignment(faculty={self.faculty_id}, course={self.course_id})>"
