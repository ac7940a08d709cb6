"""
Unit Tests for Request Context Middleware.
"""

import pytest
import structlog
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from notekeeper.core.middleware import RequestContextMiddleware


@pytest.fixture
async def client():
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware)

    @app.get("/context")
    async def context(request: Request):
        return {
            "request_id": request.state.request_id,
            "source": request.state.source,
            "bound": structlog.contextvars.get_contextvars(),
        }

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client


async def test_request_id_is_propagated(client):
    response = await client.get("/context", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"
    assert response.json()["request_id"] == "abc-123"


async def test_request_id_is_generated_when_absent(client):
    response = await client.get("/context")

    generated = response.headers["X-Request-ID"]
    assert len(generated) == 36
    assert response.json()["request_id"] == generated


async def test_response_time_header(client):
    response = await client.get("/context")

    assert response.headers["X-Response-Time"].endswith("ms")


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, "web"),
        ("CLI", "cli"),
        ("internal", "internal"),
        ("toaster", "unknown"),
    ],
)
async def test_source_header(client, header, expected):
    headers = {"X-Source": header} if header else {}

    response = await client.get("/context", headers=headers)

    assert response.json()["source"] == expected


async def test_log_context_is_bound_during_request(client):
    response = await client.get("/context", headers={"X-Request-ID": "ctx-1"})

    bound = response.json()["bound"]
    assert bound["request_id"] == "ctx-1"
    assert bound["method"] == "GET"
    assert bound["path"] == "/context"
