"""
Integration Tests for the Auth API.

Registration, login and bearer token handling against the real app.
"""

from datetime import timedelta
from types import SimpleNamespace

from notekeeper.core.config import get_app_config
from notekeeper.core.security import issue_token

API = "/api/v1/auth"


class TestRegister:
    async def test_register_returns_token_and_user(self, client, api):
        response = await client.post(
            f"{API}/register",
            json={"username": "carol", "email": "carol@notekeeper.io", "password": "pass1234"},
        )

        data = api.assert_success(response, 201)
        assert data["message"] == "User registered successfully"
        assert data["data"]["token_type"] == "bearer"
        assert data["data"]["user"]["username"] == "carol"
        assert data["data"]["user"]["role"] == "USER"
        assert "password_hash" not in data["data"]["user"]

    async def test_duplicate_username(self, client, api, alice):
        response = await client.post(
            f"{API}/register",
            json={"username": "alice", "email": "other@notekeeper.io", "password": "pass1234"},
        )

        data = api.assert_error(response, 409, "RES_CONFLICT")
        assert data["error"]["message"] == "Username is already taken"

    async def test_duplicate_email(self, client, api, alice):
        response = await client.post(
            f"{API}/register",
            json={"username": "alice2", "email": "alice@notekeeper.io", "password": "pass1234"},
        )

        api.assert_error(response, 409, "RES_CONFLICT")

    async def test_invalid_email(self, client, api):
        response = await client.post(
            f"{API}/register",
            json={"username": "dave", "email": "not-an-email", "password": "pass1234"},
        )

        api.assert_validation_error(response, "email")

    async def test_password_over_byte_limit(self, client, api):
        response = await client.post(
            f"{API}/register",
            json={"username": "frank", "email": "frank@notekeeper.io", "password": "p" * 100},
        )

        api.assert_validation_error(response, "password")

    async def test_multibyte_password_over_byte_limit(self, client, api):
        response = await client.post(
            f"{API}/register",
            json={"username": "gina", "email": "gina@notekeeper.io", "password": "\u00e9" * 40},
        )

        api.assert_validation_error(response, "password")

    async def test_registration_disabled(self, client, api, monkeypatch):
        features = get_app_config().features.model_copy(update={"auth_registration_enabled": False})
        monkeypatch.setattr(
            "notekeeper.api.v1.endpoints.auth.get_app_config",
            lambda: SimpleNamespace(features=features),
        )

        response = await client.post(
            f"{API}/register",
            json={"username": "erin", "email": "erin@notekeeper.io", "password": "pass1234"},
        )

        api.assert_error(response, 403, "AUTHZ_FORBIDDEN")


class TestLogin:
    async def test_login(self, client, api, alice):
        response = await client.post(f"{API}/login", json={"username": "alice", "password": "s3cret-pass"})

        data = api.assert_success(response)
        assert data["message"] == "Login successful"
        assert data["data"]["access_token"]

    async def test_over_long_password_is_rejected_as_bad_credentials(self, client, api, alice):
        response = await client.post(f"{API}/login", json={"username": "alice", "password": "p" * 100})

        data = api.assert_error(response, 401, "AUTH_UNAUTHORIZED")
        assert data["error"]["message"] == "Invalid username or password"

    async def test_wrong_password(self, client, api, alice):
        response = await client.post(f"{API}/login", json={"username": "alice", "password": "nope"})

        data = api.assert_error(response, 401, "AUTH_UNAUTHORIZED")
        assert data["error"]["message"] == "Invalid username or password"
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_unknown_user(self, client, api):
        response = await client.post(f"{API}/login", json={"username": "ghost", "password": "nope"})

        data = api.assert_error(response, 401)
        assert data["error"]["message"] == "Invalid username or password"


class TestCurrentUser:
    async def test_me(self, client, api, user_headers):
        response = await client.get(f"{API}/me", headers=user_headers)

        data = api.assert_success(response)
        assert data["data"]["username"] == "alice"
        assert data["data"]["email"] == "alice@notekeeper.io"

    async def test_missing_token(self, client, api):
        response = await client.get(f"{API}/me")

        data = api.assert_error(response, 401, "AUTH_UNAUTHORIZED")
        assert data["error"]["message"] == "Authentication required"

    async def test_garbage_token(self, client, api):
        response = await client.get(f"{API}/me", headers={"Authorization": "Bearer garbage"})

        api.assert_error(response, 401)

    async def test_expired_token(self, client, api, alice):
        class _Subject:
            username = "alice"

        token = issue_token(_Subject(), expires_delta=timedelta(seconds=-5))
        response = await client.get(f"{API}/me", headers={"Authorization": f"Bearer {token}"})

        data = api.assert_error(response, 401)
        assert data["error"]["message"] == "Invalid or expired token"

    async def test_token_for_deleted_user(self, client, api):
        class _Subject:
            username = "nobody"

        response = await client.get(
            f"{API}/me",
            headers={"Authorization": f"Bearer {issue_token(_Subject())}"},
        )

        api.assert_error(response, 401)
