"""
API tests for /api/v1/auth and token authentication.
"""

import asyncio
import re
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from httpx import AsyncClient

from natours.core.config import get_config_str
from natours.services.token_service import TokenService
from natours.utils.common import utcnow

pytestmark = pytest.mark.asyncio

REGISTER_PAYLOAD = {
    "username": "jonas123",
    "name": "Jonas Schmedtmann",
    "email": "Jonas@Natours.io",
    "password": "pass1234word",
    "confirmPassword": "pass1234word",
}


def reset_token_from(mailer) -> str:
    match = re.search(r"reset=([0-9a-f]+)", mailer.outbox[-1].body)
    assert match is not None
    return match.group(1)


class TestRegister:
    """POST /api/v1/auth/register"""

    async def test_register(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        assert body["data"]["email"] == "jonas@natours.io"
        assert body["data"]["role"] == "user"
        assert body["data"]["photo"] == "profile-dp.webp"
        assert "password" not in body["data"]
        assert "active" not in body["data"]

        payload = jwt.decode(body["token"], get_config_str("security.jwt_secret"), algorithms=["HS256"])
        assert payload["userId"] == body["data"]["id"]

    async def test_role_cannot_be_chosen(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/register", json={**REGISTER_PAYLOAD, "role": "admin"})
        assert response.status_code == 201
        assert response.json()["data"]["role"] == "user"

    async def test_missing_confirmation(self, client: AsyncClient):
        payload = {key: value for key, value in REGISTER_PAYLOAD.items() if key != "confirmPassword"}
        response = await client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 400
        assert response.json()["message"] == "confirmPassword is missing in the request body"

    async def test_password_mismatch(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register", json={**REGISTER_PAYLOAD, "confirmPassword": "something-else"}
        )
        assert response.status_code == 406
        assert response.json()["message"] == "password and password confirmation doesn't match"

    async def test_invalid_email(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/register", json={**REGISTER_PAYLOAD, "email": "jonas.natours"})
        assert response.status_code == 406
        assert response.json()["message"] == "jonas.natours is not a email"

    async def test_short_username(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/register", json={**REGISTER_PAYLOAD, "username": "jo"})
        assert response.status_code == 406
        assert response.json()["message"] == "a username must have minimum 5 characters"

    async def test_password_longer_than_bcrypt_limit(self, client: AsyncClient):
        password = "p" * 80
        response = await client.post(
            "/api/v1/auth/register", json={**REGISTER_PAYLOAD, "password": password, "confirmPassword": password}
        )
        assert response.status_code == 406
        assert response.json()["message"] == "password must be at most 72 bytes long"

    async def test_duplicate_email(self, client: AsyncClient):
        await client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)
        response = await client.post("/api/v1/auth/register", json={**REGISTER_PAYLOAD, "username": "other123"})
        assert response.status_code == 409
        assert response.json()["status"] == "failed"
        assert response.json()["message"].startswith("Duplicate Key - another object with value")


class TestLogin:
    """POST /api/v1/auth/login"""

    async def test_login(self, client: AsyncClient, make_user):
        user, _ = await make_user()
        response = await client.post("/api/v1/auth/login", json={"email": user.email, "password": "pass1234word"})
        assert response.status_code == 202
        body = response.json()
        assert body["status"] == "success"
        assert TokenService().verify(body["token"])["userId"] == user.id

    async def test_login_is_case_insensitive_on_email(self, client: AsyncClient, make_user):
        user, _ = await make_user()
        response = await client.post(
            "/api/v1/auth/login", json={"email": user.email.upper(), "password": "pass1234word"}
        )
        assert response.status_code == 202

    async def test_wrong_password(self, client: AsyncClient, make_user):
        user, _ = await make_user()
        response = await client.post("/api/v1/auth/login", json={"email": user.email, "password": "wrong-password"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid Email or Password"

    async def test_unknown_email(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/login", json={"email": "nobody@natours.dev", "password": "x"})
        assert response.status_code == 401

    async def test_missing_password(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/login", json={"email": "nobody@natours.dev"})
        assert response.status_code == 400
        assert response.json()["message"] == "password is missing in the request body"


class TestLoginRequired:
    """Bearer token checks on protected routes."""

    async def test_no_header(self, client: AsyncClient):
        response = await client.get("/api/v1/users/account")
        assert response.status_code == 401
        body = response.json()
        assert body["status"] == "failed"
        assert body["message"] == "No Auth Headers"
        assert body["error"]["type"] == "UnauthorizedError"

    @pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer null"])
    async def test_malformed_header(self, client: AsyncClient, header):
        response = await client.get("/api/v1/users/account", headers={"Authorization": header})
        assert response.status_code == 401
        assert response.json()["message"] == (
            "Cannot find the access token in the request headers - authorization failed"
        )

    async def test_invalid_token(self, client: AsyncClient):
        response = await client.get("/api/v1/users/account", headers={"Authorization": "Bearer not.a.token"})
        assert response.status_code == 401

    async def test_expired_token(self, client: AsyncClient, make_user):
        user, _ = await make_user()
        past = datetime.now(timezone.utc) - timedelta(days=2)
        token = jwt.encode(
            {"userId": user.id, "iat": past, "exp": past + timedelta(days=1)},
            get_config_str("security.jwt_secret"),
            algorithm="HS256",
        )
        response = await client.get("/api/v1/users/account", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["message"] == "Your token has expired! Please login again"

    async def test_user_no_longer_exists(self, client: AsyncClient):
        token = TokenService().sign("missing-user-id")
        response = await client.get("/api/v1/users/account", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["message"] == "the user belonging the token does not exists"

    async def test_password_changed_after_token(self, client: AsyncClient, make_user):
        user, _ = await make_user(password_changed_at=utcnow())
        old = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode(
            {"userId": user.id, "iat": old, "exp": old + timedelta(days=1)},
            get_config_str("security.jwt_secret"),
            algorithm="HS256",
        )
        response = await client.get("/api/v1/users/account", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["message"] == "User has recently changed the password. Please login again!"


class TestPasswordReset:
    """forgot-password / reset-password / update-password"""

    async def test_forgot_password_sends_email(self, client: AsyncClient, make_user, mailer):
        user, _ = await make_user()
        response = await client.post("/api/v1/auth/forgot-password", json={"email": user.email})
        assert response.status_code == 200
        assert response.json() == {"status": "success", "message": "Token sent to email!"}

        email = mailer.outbox[-1]
        assert email.to == user.email
        assert email.subject == "Password reset request 👨‍💻"
        assert email.sender.startswith('"Natours 🌏" <')
        assert "http://testserver/api/v1/auth/reset-password?reset=" in email.body

    async def test_forgot_password_unknown_email(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/forgot-password", json={"email": "ghost@natours.dev"})
        assert response.status_code == 404

    async def test_forgot_password_mail_failure(self, client: AsyncClient, make_user, mailer, monkeypatch):
        user, _ = await make_user()

        async def broken_send(email):
            raise ConnectionError("smtp down")

        monkeypatch.setattr(mailer, "send", broken_send)
        response = await client.post("/api/v1/auth/forgot-password", json={"email": user.email})
        assert response.status_code == 500
        assert response.json()["message"] == "There was an error sending the email. Try again later!"

    async def test_reset_password(self, client: AsyncClient, make_user, mailer):
        user, _ = await make_user()
        await client.post("/api/v1/auth/forgot-password", json={"email": user.email})
        token = reset_token_from(mailer)

        response = await client.patch(
            "/api/v1/auth/reset-password",
            params={"reset": token},
            json={"password": "brand-new-pass", "confirmPassword": "brand-new-pass"},
        )
        assert response.status_code == 200
        assert "token" in response.json()

        response = await client.post("/api/v1/auth/login", json={"email": user.email, "password": "brand-new-pass"})
        assert response.status_code == 202

        # 令牌只能使用一次
        response = await client.patch(
            "/api/v1/auth/reset-password",
            params={"reset": token},
            json={"password": "another-pass", "confirmPassword": "another-pass"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Token is invalid or has expired"

    async def test_reset_password_bad_token(self, client: AsyncClient):
        response = await client.patch(
            "/api/v1/auth/reset-password",
            params={"reset": "deadbeef"},
            json={"password": "brand-new-pass", "confirmPassword": "brand-new-pass"},
        )
        assert response.status_code == 400

    async def test_update_password(self, client: AsyncClient, make_user):
        user, headers = await make_user()
        response = await client.patch(
            "/api/v1/auth/update-password",
            headers=headers,
            json={"currentPassword": "pass1234word", "password": "updated-pass", "confirmPassword": "updated-pass"},
        )
        assert response.status_code == 200
        new_token = response.json()["token"]

        response = await client.get("/api/v1/users/account", headers={"Authorization": f"Bearer {new_token}"})
        assert response.status_code == 200

        response = await client.post("/api/v1/auth/login", json={"email": user.email, "password": "updated-pass"})
        assert response.status_code == 202

    async def test_old_token_rejected_after_password_update(self, client: AsyncClient, make_user):
        _, old_headers = await make_user()
        # 令牌 iat 精确到秒，修改密码需落在签发之后的下一秒
        await asyncio.sleep(1.1)

        response = await client.patch(
            "/api/v1/auth/update-password",
            headers=old_headers,
            json={"currentPassword": "pass1234word", "password": "updated-pass", "confirmPassword": "updated-pass"},
        )
        assert response.status_code == 200

        response = await client.get("/api/v1/users/account", headers=old_headers)
        assert response.status_code == 401
        assert response.json()["message"] == "User has recently changed the password. Please login again!"

    async def test_update_password_wrong_current(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        response = await client.patch(
            "/api/v1/auth/update-password",
            headers=headers,
            json={"currentPassword": "wrong-password", "password": "updated-pass", "confirmPassword": "updated-pass"},
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Your current password is wrong"
