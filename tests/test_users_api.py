"""
API tests for /api/v1/users.
"""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestListUsers:
    """GET /api/v1/users (admin only)"""

    async def test_admin_lists_users(self, client: AsyncClient, make_user):
        await make_user()
        _, headers = await make_user(role="admin")
        response = await client.get("/api/v1/users", headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert all("password" not in user for user in body["data"])

    async def test_regular_user_forbidden(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        response = await client.get("/api/v1/users", headers=headers)
        assert response.status_code == 403
        assert response.json()["message"] == "You do not have permission to perform this action"


class TestAccount:
    """GET /api/v1/users/account"""

    async def test_account(self, client: AsyncClient, make_user):
        user, headers = await make_user(role="guide")
        response = await client.get("/api/v1/users/account", headers=headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == user.id
        assert data["role"] == "guide"
        assert "password" not in data
        assert "passwordResetToken" not in data


class TestUpdateUser:
    """PATCH /api/v1/users/update-user"""

    async def test_update_allowed_fields(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        response = await client.patch(
            "/api/v1/users/update-user",
            headers=headers,
            json={"name": "Renamed Test User", "role": "admin", "password": "hijacked-pass"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "User updated successfully"
        assert body["data"]["name"] == "Renamed Test User"
        assert body["data"]["role"] == "user"

        response = await client.post(
            "/api/v1/auth/login", json={"email": body["data"]["email"], "password": "hijacked-pass"}
        )
        assert response.status_code == 401

    async def test_update_email_is_validated(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        response = await client.patch("/api/v1/users/update-user", headers=headers, json={"email": "broken"})
        assert response.status_code == 406
        assert response.json()["message"] == "broken is not a email"

    async def test_update_to_taken_username(self, client: AsyncClient, make_user):
        other, _ = await make_user()
        _, headers = await make_user()
        response = await client.patch(
            "/api/v1/users/update-user", headers=headers, json={"username": other.username}
        )
        assert response.status_code == 409
        assert other.username in response.json()["message"]


class TestDeleteAccount:
    """DELETE /api/v1/users/delete-account"""

    async def test_deactivated_user_disappears(self, client: AsyncClient, make_user):
        user, headers = await make_user()
        _, admin_headers = await make_user(role="admin")

        response = await client.delete("/api/v1/users/delete-account", headers=headers)
        assert response.status_code == 204

        response = await client.get("/api/v1/users", headers=admin_headers)
        assert user.id not in {item["id"] for item in response.json()["data"]}

        response = await client.get("/api/v1/users/account", headers=headers)
        assert response.status_code == 401

        response = await client.post("/api/v1/auth/login", json={"email": user.email, "password": "pass1234word"})
        assert response.status_code == 401
