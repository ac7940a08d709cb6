"""
Integration Test Fixtures.

Fixtures for integration tests - the real application wired to the SQLite
test database and the dict-backed Redis double.
These fixtures build on the root conftest.py database and cache fixtures.
"""

from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notekeeper.core.cache import CacheClient, get_cache
from notekeeper.core.database import get_db_session
from notekeeper.models.user import Role
from notekeeper.services.auth import AuthService

API = "/api/v1"
PASSWORD = "s3cret-pass"


# =============================================================================
# Application / Client Fixtures
# =============================================================================


@pytest.fixture
def app(
    db_session_factory: async_sessionmaker[AsyncSession],
    cache: CacheClient,
) -> Generator[FastAPI, None, None]:
    """
    Application with database and cache dependencies overridden.

    Each request gets its own session that commits on success and rolls
    back on error, like the production dependency.
    """
    from notekeeper.main import create_app

    app = create_app()

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_cache() -> AsyncGenerator[CacheClient, None]:
        yield cache

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_cache] = override_get_cache
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    Test client for the overridden application.

    Usage:
        async def test_health_endpoint(client: AsyncClient):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client


# =============================================================================
# API Response Assertion Helpers
# =============================================================================


class ApiAssertions:
    """Helper class for API response assertions."""

    @staticmethod
    def assert_success(response: Any, expected_status: int = 200) -> dict[str, Any]:
        """
        Assert API response is successful.

        Args:
            response: httpx Response object
            expected_status: Expected HTTP status code

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is True, f"Response not successful: {data}"
        return data

    @staticmethod
    def assert_error(
        response: Any,
        expected_status: int,
        expected_code: str | None = None,
    ) -> dict[str, Any]:
        """
        Assert API response is an error.

        Args:
            response: httpx Response object
            expected_status: Expected HTTP status code
            expected_code: Expected error code (optional)

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is False, f"Response should be error: {data}"
        assert data.get("error") is not None, f"Missing error details: {data}"

        if expected_code:
            actual_code = data["error"].get("code")
            assert actual_code == expected_code, (
                f"Expected error code {expected_code}, got {actual_code}"
            )

        return data

    @staticmethod
    def assert_validation_error(
        response: Any,
        field: str | None = None,
    ) -> dict[str, Any]:
        """
        Assert API response is a request validation error (422).

        Args:
            response: httpx Response object
            field: Expected field with validation error (optional)
        """
        data = ApiAssertions.assert_error(response, 422, "VAL_REQUEST_INVALID")

        if field:
            errors = data["error"].get("details", {}).get("validation_errors", [])
            fields = [e.get("field", "") for e in errors]
            assert any(field in f for f in fields), (
                f"Expected validation error for field '{field}', "
                f"got errors for: {fields}"
            )

        return data


@pytest.fixture
def api() -> ApiAssertions:
    """Provide API assertion helpers."""
    return ApiAssertions()


# =============================================================================
# Authentication Fixtures
# =============================================================================


async def register(client: AsyncClient, username: str) -> dict[str, Any]:
    """Register a USER through the API and return the auth payload."""
    response = await client.post(
        f"{API}/auth/register",
        json={
            "username": username,
            "email": f"{username}@notekeeper.io",
            "password": PASSWORD,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def alice(client: AsyncClient) -> dict[str, Any]:
    """Auth payload of a registered USER named alice."""
    return await register(client, "alice")


@pytest.fixture
async def bob(client: AsyncClient) -> dict[str, Any]:
    """Auth payload of a second, unrelated USER."""
    return await register(client, "bob")


@pytest.fixture
def user_headers(alice: dict[str, Any]) -> dict[str, str]:
    """
    Authorization headers for alice.

    Usage:
        async def test_protected_endpoint(client: AsyncClient, user_headers: dict):
            response = await client.get("/api/v1/auth/me", headers=user_headers)
            assert response.status_code == 200
    """
    return bearer(alice["access_token"])


@pytest.fixture
def other_user_headers(bob: dict[str, Any]) -> dict[str, str]:
    return bearer(bob["access_token"])


@pytest.fixture
async def admin_headers(
    client: AsyncClient,
    db_session_factory: async_sessionmaker[AsyncSession],
) -> dict[str, str]:
    """Authorization headers for an ADMIN created outside the API."""
    async with db_session_factory() as session:
        await AuthService(session).create_account(
            username="root",
            email="root@notekeeper.io",
            password=PASSWORD,
            role=Role.ADMIN,
        )
        await session.commit()

    response = await client.post(
        f"{API}/auth/login",
        json={"username": "root", "password": PASSWORD},
    )
    assert response.status_code == 200, response.text
    return bearer(response.json()["data"]["access_token"])


@pytest.fixture
def create_note(client: AsyncClient):
    """
    Create notes through the API.

    Usage:
        note = await create_note(user_headers, title="Groceries", category="home")
    """

    async def _create(headers: dict[str, str], **fields: Any) -> dict[str, Any]:
        payload = {"title": "Untitled", "content": "Body"}
        payload.update(fields)
        response = await client.post(f"{API}/notes", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
