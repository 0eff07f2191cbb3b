"""
Access control gate: token handling, policy table, ownership
"""
from datetime import timedelta

import pytest

from academia.errors import ErrorCode, ForbiddenError
from academia.orm.user import User, UserRole
from academia.rbac import POLICIES, create_access_token, enforce_ownership, get_policy


class TestTokens:

    async def test_missing_token(self, client):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["code"] == ErrorCode.AUTH_REQUIRED
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_garbage_token(self, client):
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["code"] == ErrorCode.AUTH_INVALID

    async def test_expired_token(self, app, client, faculty):
        token = create_access_token(faculty, app.state.settings, expires_delta=timedelta(minutes=-5))
        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["code"] == ErrorCode.AUTH_EXPIRED

    async def test_token_for_deleted_user(self, app, client, admin_headers, faculty):
        token = create_access_token(faculty, app.state.settings)
        response = await client.delete(f"/api/users/{faculty.id}", headers=admin_headers)
        assert response.status_code == 204

        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_me(self, client, faculty, faculty_headers):
        response = await client.get("/api/auth/me", headers=faculty_headers)
        assert response.status_code == 200
        assert response.json()["id"] == faculty.id
        assert response.json()["role"] == "FACULTY"


class TestPolicies:

    def test_unknown_operation_is_a_programming_error(self):
        with pytest.raises(KeyError):
            get_policy("course:teleport")

    def test_writes_on_catalog_are_admin_only(self):
        for operation in ("course:create", "course:update", "course:delete", "clo:create", "assignment:bulk"):
            assert POLICIES[operation].roles == frozenset({UserRole.ADMIN})

    def test_ownership_check(self):
        owner = User(id=1, role=UserRole.FACULTY)
        stranger = User(id=2, role=UserRole.FACULTY)
        admin = User(id=3, role=UserRole.ADMIN)

        enforce_ownership("content:read", owner, 1)
        enforce_ownership("content:read", admin, 1)
        with pytest.raises(ForbiddenError) as excinfo:
            enforce_ownership("content:read", stranger, 1)
        assert excinfo.value.code == ErrorCode.OWNERSHIP_VIOLATION

        # Operations without an ownership half never check the owner
        enforce_ownership("course:read", stranger, 1)

    async def test_role_denial_reports_required_roles(self, client, faculty_headers):
        response = await client.get("/api/users", headers=faculty_headers)
        assert response.status_code == 403
        body = response.json()
        assert body["code"] == ErrorCode.PERMISSION_DENIED
        assert body["details"]["required_roles"] == ["ADMIN"]
