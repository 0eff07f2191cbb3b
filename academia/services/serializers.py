"""
academia/services/serializers.py
Response shapes shared by the routes

All relationships read here are either selectin-loaded by the model or
loaded explicitly by the query that produced the object; nothing here may
trigger a lazy load.
"""
from typing import Any, Dict, Optional

from academia.orm.clo import CLO
from academia.orm.content import Content
from academia.orm.course import Course
from academia.orm.faculty_assignment import FacultyCourseAssignment
from academia.orm.user import User


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_user(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role.value if user.role else None,
        "created_at": _iso(user.created_at),
    }


def serialize_clo(clo: CLO) -> Dict[str, Any]:
    return {
        "id": clo.id,
        "course_id": clo.course_id,
        "number": clo.number,
        "description": clo.description,
        "created_at": _iso(clo.created_at),
    }


def serialize_assignment(assignment: FacultyCourseAssignment, include_course: bool = False) -> Dict[str, Any]:
    data = {
        "id": assignment.id,
        "faculty_id": assignment.faculty_id,
        "course_id": assignment.course_id,
        "assigned_at": _iso(assignment.assigned_at),
        "faculty": assignment.faculty.to_summary() if assignment.faculty else None,
    }
    if include_course:
        data["course"] = assignment.course.to_summary() if assignment.course else None
    return data


def serialize_content(content: Content) -> Dict[str, Any]:
    return {
        "id": content.id,
        "title": content.title,
        "type": content.type.value if content.type else None,
        "questions": list(content.questions or []),
        "course_id": content.course_id,
        "faculty_id": content.faculty_id,
        "course": content.course.to_summary() if content.course else None,
        "author": content.author.to_summary() if content.author else None,
        "created_at": _iso(content.created_at),
        "updated_at": _iso(content.updated_at),
    }


def serialize_content_summary(content: Content) -> Dict[str, Any]:
    return {
        "id": content.id,
        "title": content.title,
        "type": content.type.value if content.type else None,
        "faculty_id": content.faculty_id,
        "question_count": len(content.questions or []),
        "created_at": _iso(content.created_at),
    }


def serialize_course(course: Course, include_contents: bool = False) -> Dict[str, Any]:
    data = {
        "id": course.id,
        "name": course.name,
        "code": course.code,
        "description": course.description,
        "credit_hours": course.credit_hours,
        "department_id": course.department_id,
        "department": (
            {"id": course.department.id, "name": course.department.name, "code": course.department.code}
            if course.department else None
        ),
        "clos": [serialize_clo(clo) for clo in course.clos],
        "faculty_assignments": [serialize_assignment(a) for a in course.faculty_assignments],
        "created_at": _iso(course.created_at),
        "updated_at": _iso(course.updated_at),
    }
    if include_contents:
        data["contents"] = [serialize_content_summary(c) for c in course.contents]
    return data
