"""
academia/tests/test_api_contracts.py
API contract verification

These tests verify:
1. Error responses follow the standard format
2. HTTP status codes are correct
3. Health endpoint shape
4. Every request model is reachable from a route
"""
import inspect

from pydantic import BaseModel

from academia.errors import ErrorCode
from academia.schemas import auth as auth_schemas
from academia.schemas import course as course_schemas


def assert_error_body(data, code=None):
    assert data["success"] is False
    assert isinstance(data["error"], str)
    assert isinstance(data["message"], str)
    assert isinstance(data["code"], str)
    if code is not None:
        assert data["code"] == code


class TestErrorResponseFormat:

    async def test_401_format(self, client):
        response = await client.get("/api/courses")
        assert response.status_code == 401
        assert_error_body(response.json(), ErrorCode.AUTH_REQUIRED)

    async def test_403_format(self, client, faculty_headers):
        response = await client.delete("/api/courses/1", headers=faculty_headers)
        assert response.status_code == 403
        assert_error_body(response.json(), ErrorCode.PERMISSION_DENIED)

    async def test_404_format(self, client, admin_headers):
        response = await client.get("/api/courses/12345", headers=admin_headers)
        assert response.status_code == 404
        data = response.json()
        assert_error_body(data, ErrorCode.COURSE_NOT_FOUND)
        assert "12345" in data["message"]

    async def test_unknown_route_format(self, client):
        response = await client.get("/api/does-not-exist")
        assert response.status_code == 404
        assert_error_body(response.json(), ErrorCode.NOT_FOUND)

    async def test_validation_error_is_400(self, client, admin_headers):
        response = await client.post("/api/clos", json={"course_id": "abc"}, headers=admin_headers)
        assert response.status_code == 400
        data = response.json()
        assert_error_body(data, ErrorCode.VALIDATION_ERROR)
        assert data["details"]["errors"]

    async def test_bad_path_parameter_is_400(self, client, admin_headers):
        response = await client.get("/api/courses/not-a-number", headers=admin_headers)
        assert response.status_code == 400

    async def test_409_format(self, client, admin_headers):
        await client.post("/api/departments", json={"name": "CS", "code": "CS"}, headers=admin_headers)
        response = await client.post("/api/departments", json={"name": "CS", "code": "cs"}, headers=admin_headers)
        assert response.status_code == 409
        assert_error_body(response.json(), ErrorCode.DEPARTMENT_CODE_TAKEN)


class TestHealth:

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["content_generator"] == "fake"


class TestSchemaModels:

    async def test_every_model_is_used_by_a_route(self, app):
        components = app.openapi()["components"]["schemas"]
        for module in (auth_schemas, course_schemas):
            for name, model in inspect.getmembers(module, inspect.isclass):
                if issubclass(model, BaseModel) and model.__module__ == module.__name__:
                    assert name in components, f"{module.__name__}.{name} is not used by any route"
