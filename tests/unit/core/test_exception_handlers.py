"""
Unit Tests for Exception Handlers.

Mounts the handlers on a throwaway FastAPI app whose routes raise.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel

from notekeeper.core.exception_handlers import register_exception_handlers
from notekeeper.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CacheUnavailableError,
    ConflictError,
    DatabaseError,
    ExternalServiceError,
    NotFoundError,
    TokenMalformedError,
    ValidationError,
)

RAISERS = {
    "not-found": NotFoundError("Note not found with ID: x"),
    "validation": ValidationError("Bad input", details={"title": "This field is required"}),
    "unauthenticated": AuthenticationError(),
    "malformed": TokenMalformedError(),
    "forbidden": AuthorizationError(),
    "conflict": ConflictError("Username is already taken"),
    "cache": CacheUnavailableError(),
    "external": ExternalServiceError(),
    "database": DatabaseError(),
}


class Payload(BaseModel):
    title: str


@pytest.fixture
async def client():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/raise/{kind}")
    async def raise_kind(kind: str):
        raise RAISERS[kind]

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    @app.post("/payload")
    async def payload(body: Payload):
        return body

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as test_client:
        yield test_client


@pytest.mark.parametrize(
    ("kind", "status", "code"),
    [
        ("not-found", 404, "RES_NOT_FOUND"),
        ("validation", 400, "VAL_VALIDATION_ERROR"),
        ("unauthenticated", 401, "AUTH_UNAUTHORIZED"),
        ("malformed", 401, "AUTH_UNAUTHORIZED"),
        ("forbidden", 403, "AUTHZ_FORBIDDEN"),
        ("conflict", 409, "RES_CONFLICT"),
        ("cache", 503, "SYS_CACHE_UNAVAILABLE"),
        ("external", 502, "SYS_EXTERNAL_SERVICE_ERROR"),
        ("database", 503, "SYS_DATABASE_ERROR"),
    ],
)
async def test_application_errors_map_to_status_and_code(client, kind, status, code):
    response = await client.get(f"/raise/{kind}", headers={"X-Request-ID": "req-42"})

    assert response.status_code == status
    body = response.json()
    assert body["success"] is False
    assert body["data"] is None
    assert body["error"]["code"] == code
    assert body["metadata"]["request_id"] == "req-42"


async def test_validation_details_are_included(client):
    response = await client.get("/raise/validation")

    assert response.json()["error"]["details"] == {"title": "This field is required"}


async def test_unauthenticated_sets_www_authenticate(client):
    response = await client.get("/raise/unauthenticated")

    assert response.headers["www-authenticate"] == "Bearer"


async def test_request_schema_failure_is_422(client):
    response = await client.post("/payload", json={})

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VAL_REQUEST_INVALID"
    assert error["details"]["validation_errors"][0]["field"] == "body.title"


async def test_unhandled_exception_is_500(client):
    response = await client.get("/boom")

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "SYS_INTERNAL_ERROR"
    assert error["message"] == "An unexpected error occurred"
