"""
academia/orm/content.py
Assessable content: quizzes, assignments and exams
"""
from enum import Enum

from sqlalchemy import Column, Integer, String, ForeignKey, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship

from academia.orm.base import BaseModel


class ContentType(str, Enum):
    QUIZ = "QUIZ"
    ASSIGNMENT = "ASSIGNMENT"
    EXAM = "EXAM"


class Content(BaseModel):
    """
    An assessable item authored by one faculty member for one course.

    `questions` is an ordered JSON list whose record shape depends on `type`
    (see academia.schemas.content). It is never empty once created, and the
    author never changes.
    """
    __tablename__ = "contents"

    title = Column(String(255), nullable=False)
    type = Column(SQLEnum(ContentType), nullable=False, index=True)
    questions = Column(JSON, nullable=False, default=list)

    course_id = Column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    faculty_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    course = relationship("Course", back_populates="contents", lazy="selectin")
    author = relationship("User", back_populates="contents", lazy="selectin")

    def __repr__(self):
        return f"<Content(id={self.id}, type={self.type}, course={self.course_id})>"
