"""Application-wide behaviour: health, error envelopes and auth challenges."""

from collections.abc import AsyncIterator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db


@pytest.mark.asyncio
async def test_health_reports_ok(async_client: AsyncClient):
    response = await async_client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_unhandled_error_returns_generic_500(app: FastAPI):
    async def broken_db() -> AsyncIterator[AsyncSession]:
        raise RuntimeError("database exploded")
        yield  # pragma: no cover

    previous = app.dependency_overrides[get_db]
    app.dependency_overrides[get_db] = broken_db
    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            response = await client.get(
                "/api/likes/count",
                params={"entity_type": "post", "entity_id": "p1"},
            )
    finally:
        app.dependency_overrides[get_db] = previous

    assert response.status_code == 500
    assert response.json() == {"detail": "Server error"}
    assert "database exploded" not in response.text


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("method", "path", "headers"),
    [
        ("POST", "/api/likes", {}),
        ("DELETE", "/api/follows", {}),
        ("POST", "/api/watches", {"Authorization": "Bearer not-a-jwt"}),
    ],
)
async def test_unauthenticated_mutations_carry_bearer_challenge(
    async_client: AsyncClient,
    method: str,
    path: str,
    headers: dict[str, str],
):
    response = await async_client.request(
        method,
        path,
        json={"entity_type": "post", "entity_id": "p1"},
        headers=headers,
    )

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
