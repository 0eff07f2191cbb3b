"""
Activity log: one entry per committed mutation, newest-first pages
"""
from academia.services.activity_logger import Action
from academia.tests.conftest import assign, create_course


async def test_mutations_are_logged(client, admin, admin_headers, faculty):
    course = await create_course(client, admin_headers)
    await assign(client, admin_headers, faculty.id, course["id"])
    await client.delete(f"/api/courses/{course['id']}", headers=admin_headers)

    response = await client.get(f"/api/users/{admin.id}/activity", headers=admin_headers)
    assert response.status_code == 200
    logs = response.json()["logs"]
    assert [log["action"] for log in logs] == [
        Action.DELETE_COURSE,
        Action.CREATE_FACULTY_COURSE_ASSIGNMENT,
        Action.CREATE_COURSE,
    ]
    assert logs[0]["metadata"]["deleted_assignments"] == 1
    assert logs[1]["metadata"]["faculty_name"] == "Faculty F"


async def test_failed_mutation_is_not_logged(client, admin, admin_headers):
    await create_course(client, admin_headers)
    response = await client.post("/api/courses", json={"name": "Dup", "code": "CS301"}, headers=admin_headers)
    assert response.status_code == 409

    response = await client.get(f"/api/users/{admin.id}/activity", headers=admin_headers)
    assert response.json()["pagination"]["total"] == 1


async def test_pagination(client, admin, admin_headers):
    for i in range(5):
        await create_course(client, admin_headers, code=f"CS10{i}")

    response = await client.get(
        f"/api/users/{admin.id}/activity", params={"page": 2, "limit": 2}, headers=admin_headers
    )
    data = response.json()
    assert data["pagination"] == {"total": 5, "page": 2, "limit": 2, "pages": 3}
    assert [log["metadata"]["course_code"] for log in data["logs"]] == ["CS102", "CS101"]


async def test_activity_is_self_or_admin(client, admin, faculty, faculty_headers, other_headers):
    response = await client.get(f"/api/users/{faculty.id}/activity", headers=faculty_headers)
    assert response.status_code == 200
    assert response.json()["logs"] == []

    response = await client.get(f"/api/users/{faculty.id}/activity", headers=other_headers)
    assert response.status_code == 403
