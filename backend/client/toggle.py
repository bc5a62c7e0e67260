"""Optimistic like/follow/watch toggle state for UI code."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

from .api import InteractionApiClient, InteractionRequestError
from .kinds import EntityType, InteractionKind

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[bool, int], Awaitable[None] | None]


class InteractionToggle:
    """Local ``active``/``count`` mirror of one interaction on one target.

    ``toggle()`` applies the flip immediately and then settles it against the
    server. Loads and toggles on the same instance run one after another, so
    each request starts from the state the previous one settled on.
    """

    def __init__(
        self,
        api: InteractionApiClient,
        kind: InteractionKind,
        entity_type: EntityType,
        entity_id: str,
        on_change: ChangeCallback | None = None,
    ) -> None:
        self.api = api
        self.kind = InteractionKind(kind)
        self.entity_type = EntityType(entity_type)
        self.entity_id = entity_id
        self.on_change = on_change
        self.active = False
        self.count = 0
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        """Fetch the live count and, for signed-in clients, the status."""
        async with self._lock:
            if self.api.is_authenticated:
                count, active = await asyncio.gather(
                    self.api.count(self.kind, self.entity_type, self.entity_id),
                    self.api.status(self.kind, self.entity_type, self.entity_id),
                )
                self.active = active
            else:
                count = await self.api.count(self.kind, self.entity_type, self.entity_id)
            self.count = count

    async def toggle(self) -> bool:
        """Flip the interaction; returns the settled ``active`` state."""
        async with self._lock:
            snapshot = (self.active, self.count)
            creating = not self.active
            self.active = creating
            self.count = max(self.count + (1 if creating else -1), 0)

            try:
                payload = await self._send(creating)
            except InteractionRequestError as exc:
                if not _already_in_state(creating, exc.status_code):
                    self.active, self.count = snapshot
                    logger.warning(
                        "%s toggle failed on %s %s: %s",
                        self.kind.value,
                        self.entity_type.value,
                        self.entity_id,
                        exc,
                    )
                    raise
                await self._settle(active=creating, snapshot=snapshot)
            except Exception:
                self.active, self.count = snapshot
                raise
            else:
                self.count = int(payload["count"])

            await self._notify()
            return self.active

    async def _send(self, creating: bool) -> dict[str, Any]:
        if creating:
            return await self.api.create(self.kind, self.entity_type, self.entity_id)
        return await self.api.delete(self.kind, self.entity_type, self.entity_id)

    async def _settle(self, *, active: bool, snapshot: tuple[bool, int]) -> None:
        # The server already held the requested state; adopt it and its count.
        try:
            count = await self.api.count(self.kind, self.entity_type, self.entity_id)
        except Exception:
            self.active, self.count = snapshot
            raise
        self.active = active
        self.count = count

    async def _notify(self) -> None:
        if self.on_change is None:
            return
        result = self.on_change(self.active, self.count)
        if asyncio.iscoroutine(result):
            await result


def _already_in_state(creating: bool, status_code: int) -> bool:
    """409 on create or 404 on delete means the server is already there."""
    if creating:
        return status_code == httpx.codes.CONFLICT
    return status_code == httpx.codes.NOT_FOUND


__all__ = ["ChangeCallback", "InteractionToggle"]
