"""Async HTTP client for the interaction endpoints."""

from __future__ import annotations

from typing import Any

import httpx

from .kinds import ROUTE_NAMES, STATUS_KEYS, EntityType, InteractionKind

DEFAULT_TIMEOUT = 10.0


class InteractionRequestError(Exception):
    """A non-2xx answer from the interaction API."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


def _detail_from(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict) and "detail" in payload:
        return str(payload["detail"])
    return response.reason_phrase


class InteractionApiClient:
    """Thin wrapper over ``httpx.AsyncClient`` for likes, follows and watches."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.token = token
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            transport=transport,
            timeout=timeout,
        )

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> InteractionApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        response = await self._client.request(method, path, json=json, params=params)
        if response.is_error:
            raise InteractionRequestError(response.status_code, _detail_from(response))
        return response.json()

    @staticmethod
    def _path(kind: InteractionKind, suffix: str = "") -> str:
        return f"/api/{ROUTE_NAMES[InteractionKind(kind)]}{suffix}"

    @staticmethod
    def _target(entity_type: EntityType, entity_id: str) -> dict[str, str]:
        return {"entity_type": EntityType(entity_type).value, "entity_id": entity_id}

    async def create(
        self,
        kind: InteractionKind,
        entity_type: EntityType,
        entity_id: str,
    ) -> dict[str, Any]:
        return await self._request(
            "POST", self._path(kind), json=self._target(entity_type, entity_id)
        )

    async def delete(
        self,
        kind: InteractionKind,
        entity_type: EntityType,
        entity_id: str,
    ) -> dict[str, Any]:
        return await self._request(
            "DELETE", self._path(kind), json=self._target(entity_type, entity_id)
        )

    async def status(
        self,
        kind: InteractionKind,
        entity_type: EntityType,
        entity_id: str,
    ) -> bool:
        payload = await self._request(
            "GET", self._path(kind, "/status"), params=self._target(entity_type, entity_id)
        )
        return bool(payload[STATUS_KEYS[InteractionKind(kind)]])

    async def count(
        self,
        kind: InteractionKind,
        entity_type: EntityType,
        entity_id: str,
    ) -> int:
        payload = await self._request(
            "GET", self._path(kind, "/count"), params=self._target(entity_type, entity_id)
        )
        return int(payload["count"])

    async def user_count(self, kind: InteractionKind, entity_type: EntityType) -> int:
        payload = await self._request(
            "GET",
            self._path(kind, "/user-count"),
            params={"entity_type": EntityType(entity_type).value},
        )
        return int(payload["count"])


__all__ = ["InteractionApiClient", "InteractionRequestError"]
