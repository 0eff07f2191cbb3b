"""
Course catalog tests: creation bundle, code uniqueness, update, cascade delete
"""
import asyncio

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from academia.errors import ErrorCode
from academia.orm.clo import CLO
from academia.orm.content import Content
from academia.orm.faculty_assignment import FacultyCourseAssignment
from academia.orm.user import UserRole
from academia.services.activity_logger import ActivityLogger
from academia.services.course_service import CourseService
from academia.tests.conftest import (
    QUIZ_QUESTIONS,
    assign,
    auth_headers,
    build_app,
    create_course,
    create_user,
    make_settings,
)


class TestCreateCourse:

    async def test_create_returns_empty_clos(self, client, admin_headers):
        response = await client.post(
            "/api/courses",
            json={"name": "Algorithms", "code": "CS301", "credit_hours": 3},
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["code"] == "CS301"
        assert data["clos"] == []
        assert data["faculty_assignments"] == []

    async def test_code_is_normalized(self, client, admin_headers):
        data = await create_course(client, admin_headers, code="  cs101 ")
        assert data["code"] == "CS101"

    async def test_create_with_clos_and_faculty(self, client, admin_headers, faculty):
        response = await client.post(
            "/api/courses",
            json={
                "name": "Databases",
                "code": "CS340",
                "clos": [
                    {"description": "Design schemas"},
                    {"description": "Write queries"},
                ],
                "faculty_id": faculty.id,
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert [c["number"] for c in data["clos"]] == [1, 2]
        assert [a["faculty_id"] for a in data["faculty_assignments"]] == [faculty.id]
        assert data["faculty_assignments"][0]["faculty"]["name"] == "Faculty F"

    async def test_duplicate_code_conflicts(self, client, admin_headers):
        await create_course(client, admin_headers, code="CS301")
        response = await client.post(
            "/api/courses",
            json={"name": "Other", "code": "cs301"},
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json()["code"] == ErrorCode.COURSE_CODE_TAKEN

    async def test_duplicate_clo_numbers_rejected(self, client, admin_headers, db):
        response = await client.post(
            "/api/courses",
            json={
                "name": "Networks",
                "code": "CS350",
                "clos": [{"number": 1, "description": "a"}, {"number": 1, "description": "b"}],
            },
            headers=admin_headers,
        )
        assert response.status_code == 400
        count = (await db.execute(select(func.count(CLO.id)))).scalar()
        assert count == 0

    async def test_non_faculty_link_rejected_without_writes(self, client, admin, admin_headers):
        response = await client.post(
            "/api/courses",
            json={"name": "Compilers", "code": "CS440", "faculty_id": admin.id},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.NOT_FACULTY

        listing = await client.get("/api/courses", headers=admin_headers)
        assert listing.json() == []

    async def test_unknown_faculty_is_404(self, client, admin_headers):
        response = await client.post(
            "/api/courses",
            json={"name": "Compilers", "code": "CS440", "faculty_id": 999},
            headers=admin_headers,
        )
        assert response.status_code == 404

    async def test_faculty_cannot_create(self, client, faculty_headers):
        response = await client.post(
            "/api/courses",
            json={"name": "Algorithms", "code": "CS301"},
            headers=faculty_headers,
        )
        assert response.status_code == 403
        assert response.json()["code"] == ErrorCode.PERMISSION_DENIED

    async def test_missing_name_is_400(self, client, admin_headers):
        response = await client.post("/api/courses", json={"code": "CS301"}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.VALIDATION_ERROR


async def test_concurrent_create_same_code(tmp_path):
    """Two racing creates with the same code: one 201, one 409."""
    app = await build_app(make_settings(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}"))
    try:
        admin = await create_user(app, "racer@test.com", UserRole.ADMIN)
        headers = auth_headers(app, admin)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            responses = await asyncio.gather(*[
                client.post("/api/courses", json={"name": f"Race {i}", "code": "RACE1"}, headers=headers)
                for i in range(2)
            ])
            statuses = sorted(r.status_code for r in responses)
            assert statuses == [201, 409]

            listing = await client.get("/api/courses", params={"code": "RACE1"}, headers=headers)
            assert len(listing.json()) == 1
    finally:
        await app.state.database.dispose()


class TestListAndGet:

    async def test_list_filters_and_order(self, client, admin_headers, faculty_headers):
        await create_course(client, admin_headers, code="MA201", name="Linear Algebra")
        await create_course(client, admin_headers, code="CS101", name="Intro Programming")
        await create_course(client, admin_headers, code="CS201", name="Data Structures")

        response = await client.get("/api/courses", headers=faculty_headers)
        assert [c["code"] for c in response.json()] == ["CS101", "CS201", "MA201"]

        response = await client.get("/api/courses", params={"code": "cs"}, headers=faculty_headers)
        assert [c["code"] for c in response.json()] == ["CS101", "CS201"]

        response = await client.get("/api/courses", params={"name": "ALGEBRA"}, headers=faculty_headers)
        assert [c["code"] for c in response.json()] == ["MA201"]

    async def test_filter_by_department(self, client, admin_headers):
        dept = await client.post(
            "/api/departments", json={"name": "Mathematics", "code": "math"}, headers=admin_headers
        )
        assert dept.status_code == 201
        dept_id = dept.json()["id"]
        assert dept.json()["code"] == "MATH"

        await create_course(client, admin_headers, code="MA201", department_id=dept_id)
        await create_course(client, admin_headers, code="CS101")

        response = await client.get("/api/courses", params={"department_id": dept_id}, headers=admin_headers)
        data = response.json()
        assert [c["code"] for c in data] == ["MA201"]
        assert data[0]["department"]["code"] == "MATH"

    async def test_unknown_department_is_404(self, client, admin_headers):
        response = await client.post(
            "/api/courses", json={"name": "X", "code": "X1", "department_id": 42}, headers=admin_headers
        )
        assert response.status_code == 404

    async def test_get_course_includes_content_summaries(self, client, admin_headers, faculty, faculty_headers):
        course = await create_course(client, admin_headers)
        await assign(client, admin_headers, faculty.id, course["id"])
        created = await client.post(
            "/api/content",
            json={"title": "Quiz 1", "type": "QUIZ", "course_id": course["id"], "questions": QUIZ_QUESTIONS},
            headers=faculty_headers,
        )
        assert created.status_code == 201

        response = await client.get(f"/api/courses/{course['id']}", headers=faculty_headers)
        assert response.status_code == 200
        contents = response.json()["contents"]
        assert len(contents) == 1
        assert contents[0]["question_count"] == 3

    async def test_get_missing_course(self, client, admin_headers):
        response = await client.get("/api/courses/999", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["code"] == ErrorCode.COURSE_NOT_FOUND

    async def test_requires_authentication(self, client):
        response = await client.get("/api/courses")
        assert response.status_code == 401


class TestUpdateCourse:

    async def test_update_fields(self, client, admin_headers):
        course = await create_course(client, admin_headers)
        response = await client.put(
            f"/api/courses/{course['id']}",
            json={"name": "Advanced Algorithms", "credit_hours": 4},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Advanced Algorithms"
        assert data["credit_hours"] == 4
        assert data["code"] == "CS301"

    async def test_same_code_is_not_a_conflict(self, client, admin_headers):
        course = await create_course(client, admin_headers)
        response = await client.put(
            f"/api/courses/{course['id']}", json={"code": "CS301"}, headers=admin_headers
        )
        assert response.status_code == 200

    async def test_code_collision_with_other_course(self, client, admin_headers):
        await create_course(client, admin_headers, code="CS101")
        course = await create_course(client, admin_headers, code="CS102")
        response = await client.put(
            f"/api/courses/{course['id']}", json={"code": "CS101"}, headers=admin_headers
        )
        assert response.status_code == 409

    async def test_faculty_link_is_idempotent(self, client, admin_headers, faculty):
        course = await create_course(client, admin_headers)
        for _ in range(2):
            response = await client.put(
                f"/api/courses/{course['id']}", json={"faculty_id": faculty.id}, headers=admin_headers
            )
            assert response.status_code == 200
        assert len(response.json()["faculty_assignments"]) == 1

    async def test_update_missing_course(self, client, admin_headers):
        response = await client.put("/api/courses/999", json={"name": "x"}, headers=admin_headers)
        assert response.status_code == 404


class TestDeleteCourse:

    async def test_delete_cascades(self, client, admin_headers, faculty, faculty_headers, db):
        course = await create_course(
            client, admin_headers,
            clos=[{"description": "one"}, {"description": "two"}, {"description": "three"}],
            faculty_id=faculty.id,
        )
        created = await client.post(
            "/api/content",
            json={"title": "Quiz", "type": "QUIZ", "course_id": course["id"], "questions": QUIZ_QUESTIONS},
            headers=faculty_headers,
        )
        assert created.status_code == 201

        response = await client.delete(f"/api/courses/{course['id']}", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["deleted_clos"] == 3
        assert data["deleted_assignments"] == 1
        assert data["deleted_contents"] == 1

        for model in (CLO, FacultyCourseAssignment, Content):
            remaining = (await db.execute(
                select(func.count()).select_from(model).where(model.course_id == course["id"])
            )).scalar()
            assert remaining == 0

        response = await client.get(f"/api/courses/{course['id']}", headers=admin_headers)
        assert response.status_code == 404

    async def test_failed_delete_rolls_back_everything(self, app, client, admin, admin_headers, faculty,
                                                       monkeypatch):
        course = await create_course(
            client, admin_headers,
            clos=[{"description": "one"}, {"description": "two"}],
            faculty_id=faculty.id,
        )

        def broken_record(self, actor_id, action, metadata=None):
            raise RuntimeError("log store unavailable")

        monkeypatch.setattr(ActivityLogger, "record", broken_record)
        async with app.state.database.session_factory() as session:
            service = CourseService(session, ActivityLogger(session))
            with pytest.raises(RuntimeError):
                await service.delete_course(admin, course["id"])
        monkeypatch.undo()

        response = await client.get(f"/api/courses/{course['id']}", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert len(data["clos"]) == 2
        assert len(data["faculty_assignments"]) == 1

    async def test_delete_missing(self, client, admin_headers):
        response = await client.delete("/api/courses/999", headers=admin_headers)
        assert response.status_code == 404
