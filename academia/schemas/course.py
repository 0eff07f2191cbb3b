"""
academia/schemas/course.py
Schemas for departments, courses, CLOs and faculty-course assignments
"""
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# ================= DEPARTMENTS =================

class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None


# ================= CLOS =================

class CLOInput(BaseModel):
    """CLO nested in a course-creation payload; number defaults to position"""
    description: str = Field(..., min_length=1)
    number: Optional[int] = Field(None, ge=1)


class CLOCreate(BaseModel):
    course_id: int
    number: int = Field(..., ge=1)
    description: str = Field(..., min_length=1)


class CLOUpdate(BaseModel):
    number: Optional[int] = Field(None, ge=1)
    description: Optional[str] = Field(None, min_length=1)


# ================= COURSES =================

def _normalize_code(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip().upper()
    if not value:
        raise ValueError("code cannot be empty")
    return value


class CourseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    credit_hours: int = Field(3, ge=0, le=12)
    department_id: Optional[int] = None
    clos: List[CLOInput] = Field(default_factory=list)
    faculty_id: Optional[int] = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value):
        return _normalize_code(value)


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    credit_hours: Optional[int] = Field(None, ge=0, le=12)
    department_id: Optional[int] = None
    faculty_id: Optional[int] = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value):
        return _normalize_code(value)


# ================= ASSIGNMENTS =================

class FacultyCourseLink(BaseModel):
    faculty_id: int
    course_id: int


class BulkCoursesToFaculty(BaseModel):
    faculty_id: int
    course_ids: List[int] = Field(..., min_length=1)


class BulkFacultyToCourse(BaseModel):
    course_id: int
    faculty_ids: List[int] = Field(..., min_length=1)
