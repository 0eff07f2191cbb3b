"""
CLO registry tests
"""
from academia.errors import ErrorCode
from academia.tests.conftest import create_course


async def _create_clo(client, headers, course_id, number, description="Analyze complexity"):
    return await client.post(
        "/api/clos",
        json={"course_id": course_id, "number": number, "description": description},
        headers=headers,
    )


class TestCLOs:

    async def test_number_unique_per_course(self, client, admin_headers):
        course = await create_course(client, admin_headers, code="CS301")
        other = await create_course(client, admin_headers, code="CS302")

        first = await _create_clo(client, admin_headers, course["id"], 1)
        assert first.status_code == 201
        assert first.json()["number"] == 1

        duplicate = await _create_clo(client, admin_headers, course["id"], 1, "Something else")
        assert duplicate.status_code == 409
        assert duplicate.json()["code"] == ErrorCode.CLO_NUMBER_TAKEN

        elsewhere = await _create_clo(client, admin_headers, other["id"], 1)
        assert elsewhere.status_code == 201

    async def test_create_for_missing_course(self, client, admin_headers):
        response = await _create_clo(client, admin_headers, 999, 1)
        assert response.status_code == 404

    async def test_list_ordered_by_number(self, client, admin_headers, faculty_headers):
        course = await create_course(client, admin_headers)
        for number in (3, 1, 2):
            assert (await _create_clo(client, admin_headers, course["id"], number, f"CLO {number}")).status_code == 201

        response = await client.get(f"/api/clos/course/{course['id']}", headers=faculty_headers)
        assert response.status_code == 200
        assert [c["number"] for c in response.json()] == [1, 2, 3]

    async def test_list_for_unknown_course(self, client, admin_headers):
        response = await client.get("/api/clos/course/999", headers=admin_headers)
        assert response.status_code == 404

    async def test_update_number_collision(self, client, admin_headers):
        course = await create_course(client, admin_headers)
        await _create_clo(client, admin_headers, course["id"], 1)
        second = (await _create_clo(client, admin_headers, course["id"], 2)).json()

        response = await client.put(f"/api/clos/{second['id']}", json={"number": 1}, headers=admin_headers)
        assert response.status_code == 409

        response = await client.put(
            f"/api/clos/{second['id']}",
            json={"number": 2, "description": "Prove correctness"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["description"] == "Prove correctness"

    async def test_get_and_delete(self, client, admin_headers):
        course = await create_course(client, admin_headers)
        clo = (await _create_clo(client, admin_headers, course["id"], 1)).json()

        response = await client.get(f"/api/clos/{clo['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["course_id"] == course["id"]

        response = await client.delete(f"/api/clos/{clo['id']}", headers=admin_headers)
        assert response.status_code == 204

        response = await client.get(f"/api/clos/{clo['id']}", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["code"] == ErrorCode.CLO_NOT_FOUND

        response = await client.delete(f"/api/clos/{clo['id']}", headers=admin_headers)
        assert response.status_code == 404

    async def test_faculty_cannot_write(self, client, admin_headers, faculty_headers):
        course = await create_course(client, admin_headers)
        response = await _create_clo(client, faculty_headers, course["id"], 1)
        assert response.status_code == 403
