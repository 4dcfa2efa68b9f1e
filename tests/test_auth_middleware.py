"""
Tests for the bearer-token dependency and the super admin gate.

Each rejection path of the authorization state machine has its own status
code and message; these tests pin them down one by one.
"""

import time
from datetime import timedelta

import pytest
from bson import ObjectId
from fastapi import HTTPException
from jose import jwt

from inventory_admin.core.config import Settings, get_settings
from inventory_admin.core.deps import require_super_admin, verify_authorization_header
from inventory_admin.core.security import create_access_token
from inventory_admin.main import app
from inventory_admin.models.admin import CurrentAdmin

SECRET = "test-secret-key"
FORMAT_MESSAGE = "Invalid authorization format. Expected: Bearer <token>"


def _sign(payload, expires_in=timedelta(hours=1)):
    claims = dict(payload)
    claims["exp"] = int(time.time() + expires_in.total_seconds())
    return jwt.encode(claims, SECRET, algorithm="HS256")


def _reject(header, secret=SECRET):
    with pytest.raises(HTTPException) as exc_info:
        verify_authorization_header(header, secret)
    return exc_info.value.status_code, exc_info.value.detail


class TestRequireAuth:
    def test_missing_header(self):
        assert _reject(None) == (401, "Authorization header required")

    @pytest.mark.parametrize(
        "header",
        ["InvalidToken", "Bearer", "Bearer ", "Token abc", "Bearer a b", "Basic dXNlcjpwYXNz"],
    )
    def test_invalid_format(self, header):
        assert _reject(header) == (401, FORMAT_MESSAGE)

    def test_lowercase_bearer_rejected(self):
        token = _sign({"id": "123", "email": "admin@test.com"})

        assert _reject(f"bearer {token}") == (401, FORMAT_MESSAGE)

    @pytest.mark.parametrize("secret", [None, ""])
    def test_secret_not_configured(self, secret):
        assert _reject("Bearer sometoken", secret=secret) == (500, "Authentication not configured")

    @pytest.mark.parametrize("token", ["invalid.jwt.token", "malformed-token"])
    def test_garbage_token(self, token):
        assert _reject(f"Bearer {token}") == (403, "Invalid token")

    def test_wrong_signature(self):
        token = create_access_token("123", "admin@test.com", secret="another-secret")

        assert _reject(f"Bearer {token}") == (403, "Invalid token")

    def test_expired_token(self):
        token = _sign({"id": "123", "email": "admin@test.com"}, expires_in=timedelta(seconds=-1))

        assert _reject(f"Bearer {token}") == (401, "Token expired")

    @pytest.mark.parametrize(
        "payload",
        [
            {"email": "admin@test.com"},
            {"id": "123"},
            {"id": "", "email": "admin@test.com"},
            {"id": 123, "email": "admin@test.com"},
            {"id": "123", "email": ""},
            {"id": "123", "email": ["admin@test.com"]},
        ],
    )
    def test_invalid_payload(self, payload):
        token = _sign(payload)

        assert _reject(f"Bearer {token}") == (401, "Invalid token payload")

    def test_valid_token(self):
        token = _sign({"id": "user-id-123", "email": "test.admin@example.com"})

        admin = verify_authorization_header(f"Bearer {token}", SECRET)

        assert admin == CurrentAdmin(id="user-id-123", email="test.admin@example.com")


@pytest.mark.asyncio
class TestRequireAuthOverHttp:
    async def test_no_header(self, client):
        response = await client.get("/api/admin/me")

        assert response.status_code == 401
        assert response.json() == {"message": "Authorization header required"}

    async def test_invalid_token(self, client):
        response = await client.get("/api/admin/me", headers={"Authorization": "Bearer invalid-token"})

        assert response.status_code == 403
        assert response.json() == {"message": "Invalid token"}

    async def test_secret_missing(self, client):
        app.dependency_overrides[get_settings] = lambda: Settings(JWT_SECRET=None)

        response = await client.get("/api/admin/me", headers={"Authorization": "Bearer sometoken"})

        assert response.status_code == 500
        assert response.json() == {"message": "Authentication not configured"}

    async def test_valid_token_reaches_route(self, client, make_admin, auth_headers):
        admin = await make_admin()

        response = await client.get("/api/admin/me", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["admin"]["email"] == "admin@test.com"


class _State:
    pass


class _Request:
    def __init__(self, admin=None):
        self.state = _State()
        if admin is not None:
            self.state.admin = admin


class _Repository:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def find_by_id(self, admin_id, projection=None):
        self.calls.append((admin_id, projection))
        if self.error:
            raise self.error
        return self.result


@pytest.mark.asyncio
class TestRequireSuperAdmin:
    async def test_super_admin_passes(self):
        repo = _Repository(result={"role": "super_admin"})

        admin = await require_super_admin(_Request(CurrentAdmin("test-admin-id", "a@test.com")), repo)

        assert admin["role"] == "super_admin"
        # only the role is loaded
        assert repo.calls == [("test-admin-id", ["role"])]

    async def test_regular_admin_forbidden(self):
        repo = _Repository(result={"role": "admin"})

        with pytest.raises(HTTPException) as exc_info:
            await require_super_admin(_Request(CurrentAdmin("test-admin-id", "a@test.com")), repo)

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "Access denied. Super admin privileges required."

    async def test_unauthenticated(self):
        repo = _Repository()

        with pytest.raises(HTTPException) as exc_info:
            await require_super_admin(_Request(), repo)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Not authenticated"
        assert repo.calls == []

    async def test_admin_gone(self):
        repo = _Repository(result=None)

        with pytest.raises(HTTPException) as exc_info:
            await require_super_admin(_Request(CurrentAdmin("test-admin-id", "a@test.com")), repo)

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "Admin not found"

    async def test_store_error(self):
        repo = _Repository(error=RuntimeError("Database connection failed"))

        with pytest.raises(HTTPException) as exc_info:
            await require_super_admin(_Request(CurrentAdmin("test-admin-id", "a@test.com")), repo)

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Authorization failed"

    async def test_gate_over_http(self, client, make_admin, auth_headers):
        admin = await make_admin(role="admin")
        boss = await make_admin(email="boss@test.com", role="super_admin")

        denied = await client.get("/api/admin/list", headers=auth_headers(admin))
        allowed = await client.get("/api/admin/list", headers=auth_headers(boss))

        assert denied.status_code == 403
        assert allowed.status_code == 200

    async def test_deleted_admin_token_over_http(self, client, auth_headers):
        ghost = {"_id": ObjectId(), "email": "ghost@test.com"}

        response = await client.get("/api/admin/list", headers=auth_headers(ghost))

        assert response.status_code == 404
        assert response.json() == {"message": "Admin not found"}
