"""Tests for the async interaction client and its optimistic toggle."""

import asyncio
import json
import os
import subprocess
import sys
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession

from client import (
    EntityType,
    InteractionApiClient,
    InteractionKind,
    InteractionRequestError,
    InteractionToggle,
)
from models import Post


@pytest_asyncio.fixture()
async def post_id(db_session: AsyncSession, create_account) -> str:
    author = await create_account("author")
    db_session.add(Post(id="p1", author_id=author.id, title="Hello"))
    await db_session.commit()
    return "p1"


@pytest_asyncio.fixture()
async def live_api(app: FastAPI, create_account) -> AsyncIterator[InteractionApiClient]:
    fan = await create_account("fan")
    api = InteractionApiClient(
        "http://testserver",
        token=fan.token,
        transport=httpx.ASGITransport(app=app),
    )
    async with api:
        yield api


def _mock_api(handler: Callable[[httpx.Request], httpx.Response]) -> InteractionApiClient:
    return InteractionApiClient(
        "http://testserver",
        token="token",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_client_round_trip_against_app(live_api: InteractionApiClient, post_id: str):
    created = await live_api.create(InteractionKind.LIKE, EntityType.POST, post_id)
    assert created["count"] == 1

    assert await live_api.status(InteractionKind.LIKE, EntityType.POST, post_id) is True
    assert await live_api.count(InteractionKind.LIKE, EntityType.POST, post_id) == 1
    assert await live_api.user_count(InteractionKind.LIKE, EntityType.POST) == 1

    with pytest.raises(InteractionRequestError) as excinfo:
        await live_api.create(InteractionKind.LIKE, EntityType.POST, post_id)
    assert excinfo.value.status_code == 409
    assert excinfo.value.detail == "Already liked"

    removed = await live_api.delete(InteractionKind.LIKE, EntityType.POST, post_id)
    assert removed["count"] == 0


@pytest.mark.asyncio
async def test_toggle_load_and_flip(live_api: InteractionApiClient, post_id: str):
    changes: list[tuple[bool, int]] = []
    toggle = InteractionToggle(
        live_api,
        InteractionKind.WATCH,
        EntityType.POST,
        post_id,
        on_change=lambda active, count: changes.append((active, count)),
    )

    await toggle.load()
    assert (toggle.active, toggle.count) == (False, 0)

    assert await toggle.toggle() is True
    assert (toggle.active, toggle.count) == (True, 1)

    assert await toggle.toggle() is False
    assert (toggle.active, toggle.count) == (False, 0)
    assert changes == [(True, 1), (False, 0)]


@pytest.mark.asyncio
async def test_overlapping_toggles_apply_in_order(live_api: InteractionApiClient, post_id: str):
    toggle = InteractionToggle(live_api, InteractionKind.LIKE, EntityType.POST, post_id)
    await toggle.load()

    results = await asyncio.gather(toggle.toggle(), toggle.toggle(), toggle.toggle())

    assert results == [True, False, True]
    assert toggle.active is True
    assert toggle.count == 1
    assert await live_api.count(InteractionKind.LIKE, EntityType.POST, post_id) == 1


@pytest.mark.asyncio
async def test_toggle_adopts_present_state_on_conflict(
    live_api: InteractionApiClient,
    post_id: str,
):
    # Another tab already liked the post; this toggle still thinks it is absent.
    await live_api.create(InteractionKind.LIKE, EntityType.POST, post_id)
    toggle = InteractionToggle(live_api, InteractionKind.LIKE, EntityType.POST, post_id)

    assert await toggle.toggle() is True
    assert (toggle.active, toggle.count) == (True, 1)


@pytest.mark.asyncio
async def test_toggle_adopts_absent_state_on_missing_delete(
    live_api: InteractionApiClient,
    post_id: str,
):
    toggle = InteractionToggle(live_api, InteractionKind.LIKE, EntityType.POST, post_id)
    toggle.active = True
    toggle.count = 1

    assert await toggle.toggle() is False
    assert (toggle.active, toggle.count) == (False, 0)


@pytest.mark.asyncio
async def test_toggle_rolls_back_on_server_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"detail": "Server error"})

    api = _mock_api(handler)
    toggle = InteractionToggle(api, InteractionKind.FOLLOW, EntityType.USER, "u1")
    toggle.count = 4

    with pytest.raises(InteractionRequestError) as excinfo:
        await toggle.toggle()

    assert excinfo.value.status_code == 500
    assert (toggle.active, toggle.count) == (False, 4)
    await api.aclose()


@pytest.mark.asyncio
async def test_toggle_rolls_back_on_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    api = _mock_api(handler)
    toggle = InteractionToggle(api, InteractionKind.LIKE, EntityType.POST, "p1")
    toggle.active = True
    toggle.count = 2

    with pytest.raises(httpx.ConnectError):
        await toggle.toggle()

    assert (toggle.active, toggle.count) == (True, 2)
    await api.aclose()


@pytest.mark.asyncio
async def test_client_sends_bearer_token_and_target_body():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            201,
            json={
                "id": "i1",
                "kind": "watch",
                "user_id": "u1",
                "entity_type": "project",
                "entity_id": "proj",
                "created_at": "2026-01-01T00:00:00Z",
                "count": 7,
            },
        )

    api = _mock_api(handler)
    result = await api.create(InteractionKind.WATCH, EntityType.PROJECT, "proj")
    await api.aclose()

    assert result["count"] == 7
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/api/watches"
    assert request.headers["authorization"] == "Bearer token"
    assert json.loads(request.content) == {"entity_type": "project", "entity_id": "proj"}


@pytest.mark.asyncio
async def test_anonymous_load_skips_status_request():
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json={"count": 3})

    api = InteractionApiClient("http://testserver", transport=httpx.MockTransport(handler))
    toggle = InteractionToggle(api, InteractionKind.FOLLOW, EntityType.USER, "u1")

    await toggle.load()
    await api.aclose()

    assert paths == ["/api/follows/count"]
    assert (toggle.active, toggle.count) == (False, 3)


@pytest.mark.asyncio
async def test_toggle_rolls_back_when_conflict_refetch_fails():
    count_calls = 0
    changes: list[tuple[bool, int]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal count_calls
        if request.method == "POST":
            return httpx.Response(409, json={"detail": "Already liked"})
        if request.url.path.endswith("/status"):
            return httpx.Response(200, json={"liked": False})
        count_calls += 1
        if count_calls == 1:
            return httpx.Response(200, json={"count": 5})
        return httpx.Response(503, json={"detail": "Service unavailable"})

    api = _mock_api(handler)
    toggle = InteractionToggle(
        api,
        InteractionKind.LIKE,
        EntityType.POST,
        "p1",
        on_change=lambda active, count: changes.append((active, count)),
    )
    await toggle.load()
    assert (toggle.active, toggle.count) == (False, 5)

    with pytest.raises(InteractionRequestError) as excinfo:
        await toggle.toggle()
    await api.aclose()

    assert excinfo.value.status_code == 503
    assert (toggle.active, toggle.count) == (False, 5)
    assert changes == []


@pytest.mark.asyncio
async def test_toggle_rolls_back_when_missing_delete_refetch_fails():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "DELETE":
            return httpx.Response(404, json={"detail": "Watch not found"})
        raise httpx.ReadTimeout("slow", request=request)

    api = _mock_api(handler)
    toggle = InteractionToggle(api, InteractionKind.WATCH, EntityType.PROJECT, "proj")
    toggle.active = True
    toggle.count = 3

    with pytest.raises(httpx.ReadTimeout):
        await toggle.toggle()
    await api.aclose()

    assert (toggle.active, toggle.count) == (True, 3)


@pytest.mark.asyncio
async def test_load_waits_for_in_flight_toggle():
    server = {"liked": False, "count": 0}
    release = asyncio.Event()
    paths: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        paths.append(f"{request.method} {request.url.path}")
        if request.method == "POST":
            await release.wait()
            server.update(liked=True, count=1)
            return httpx.Response(201, json={"count": 1})
        if request.url.path.endswith("/status"):
            return httpx.Response(200, json={"liked": server["liked"]})
        return httpx.Response(200, json={"count": server["count"]})

    api = _mock_api(handler)
    toggle = InteractionToggle(api, InteractionKind.LIKE, EntityType.POST, "p1")

    toggling = asyncio.create_task(toggle.toggle())
    await asyncio.sleep(0)
    loading = asyncio.create_task(toggle.load())
    for _ in range(20):
        await asyncio.sleep(0)

    assert paths == ["POST /api/likes"]

    release.set()
    await asyncio.gather(toggling, loading)
    await api.aclose()

    assert (toggle.active, toggle.count) == (True, 1)
    assert sorted(paths[1:]) == ["GET /api/likes/count", "GET /api/likes/status"]


def test_client_import_stays_free_of_server_stack():
    backend_root = Path(__file__).resolve().parents[1]
    script = (
        "import sys, client\n"
        "loaded = sorted(m for m in ('db', 'db.session', 'redis', 'sqlalchemy', 'fastapi', "
        "'services') if m in sys.modules)\n"
        "print(','.join(loaded))\n"
    )
    env = {
        **os.environ,
        "PYTHONPATH": str(backend_root),
        "DATABASE_URL": "postgresql+asyncpg://u:p@nohost/db",
    }

    completed = subprocess.run(
        [sys.executable, "-c", script],
        cwd=backend_root,
        env=env,
        capture_output=True,
        text=True,
        check=False,
        timeout=30,
    )

    assert completed.returncode == 0, completed.stderr
    assert completed.stdout.strip() == ""
