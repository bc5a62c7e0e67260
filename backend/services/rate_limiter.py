"""Redis-backed rate limiting for the API.

Every request is counted in a fixed window keyed by the caller. Interaction
writes (creating or removing a like, follow or watch) are also counted in a
separate, tighter bucket so toggle spam cannot starve ordinary reads.
"""

from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Callable, Iterable, Protocol, runtime_checkable

from fastapi import status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.types import ASGIApp

from core import decode_token, settings

logger = logging.getLogger(__name__)

INTERACTION_WRITE_METHODS = frozenset({"POST", "DELETE"})
INTERACTION_WRITE_PATHS = frozenset({"/api/likes", "/api/follows", "/api/watches"})

# (bucket name, per-window limit) for requests that carry an extra budget.
RateLimitScope = tuple[str, int]


@runtime_checkable
class SupportsRateLimitClient(Protocol):
    async def incr(self, key: str) -> int: ...

    async def expire(self, key: str, ttl: int) -> None: ...


def _bearer_subject(request: Request) -> str | None:
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None
    try:
        subject = decode_token(token).get("sub")
    except ValueError:
        return None
    if not isinstance(subject, str) or not subject.strip():
        return None
    return subject.strip()


def default_client_identifier(request: Request) -> str:
    """Resolve a stable client identifier for rate limiting.

    Authenticated callers are keyed by token subject so one user shares a
    bucket across addresses; everyone else is keyed by remote host.
    """
    subject = _bearer_subject(request)
    if subject:
        return f"user:{subject}"
    if request.client and request.client.host:
        return request.client.host
    return "anonymous"


def interaction_write_scope(request: Request) -> RateLimitScope | None:
    """Return the interaction-write bucket for like/follow/watch mutations."""
    if request.method not in INTERACTION_WRITE_METHODS:
        return None
    if request.url.path.rstrip("/") not in INTERACTION_WRITE_PATHS:
        return None
    return "interactions", settings.interaction_rate_limit_requests


class RateLimiter:
    """Fixed-window counter stored in Redis."""

    def __init__(
        self,
        redis_client: SupportsRateLimitClient,
        limit: int,
        window_seconds: int,
        prefix: str = "rate-limit",
    ) -> None:
        self.redis = redis_client
        self.limit = max(limit, 0)
        self.window_seconds = max(window_seconds, 0)
        self.prefix = prefix

    async def allow(self, key: str, limit: int | None = None) -> bool:
        """Count one hit for ``key``; False once the window's budget is spent.

        ``limit`` overrides the limiter default for scoped buckets. A limit or
        window of zero disables limiting.
        """
        effective_limit = self.limit if limit is None else max(limit, 0)
        if effective_limit == 0 or self.window_seconds == 0:
            return True

        bucket = int(time.time()) // self.window_seconds
        redis_key = f"{self.prefix}:{key}:{bucket}"

        count = await self.redis.incr(redis_key)
        if count == 1:
            await self.redis.expire(redis_key, self.window_seconds)
        return count <= effective_limit

    def retry_after(self) -> int:
        if self.window_seconds == 0:
            return 0
        return self.window_seconds - int(time.time()) % self.window_seconds


@lru_cache
def get_redis_client() -> SupportsRateLimitClient:
    return Redis.from_url(settings.redis_url, decode_responses=False)


_cached_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Singleton accessor for the shared rate limiter."""
    global _cached_rate_limiter
    if _cached_rate_limiter is None:
        _cached_rate_limiter = RateLimiter(
            redis_client=get_redis_client(),
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    return _cached_rate_limiter


def set_rate_limiter(limiter: RateLimiter | None) -> None:
    """Replace the shared limiter; None rebuilds it from settings on next use."""
    global _cached_rate_limiter
    _cached_rate_limiter = limiter


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests over budget with 429 and a ``Retry-After`` header."""

    def __init__(
        self,
        app: ASGIApp,
        limiter_factory: Callable[[], RateLimiter],
        exempt_paths: Iterable[str] | None = None,
        client_identifier: Callable[[Request], str] | None = None,
        scope_resolver: Callable[[Request], RateLimitScope | None] | None = None,
    ) -> None:
        super().__init__(app)
        self.limiter_factory = limiter_factory
        self.exempt_paths = set(exempt_paths or ())
        self.client_identifier = client_identifier or default_client_identifier
        self.scope_resolver = scope_resolver

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        override = getattr(request.app.state, "rate_limiter_override", None)
        limiter = override if override is not None else self._get_limiter()
        if limiter is None:
            return await call_next(request)

        client_key = self.client_identifier(request) or "anonymous"
        scope = self.scope_resolver(request) if self.scope_resolver else None
        try:
            allowed = await limiter.allow(client_key)
            if allowed and scope is not None:
                scope_name, scope_limit = scope
                allowed = await limiter.allow(f"{scope_name}:{client_key}", scope_limit)
        except Exception:
            logger.warning("Rate limiter unavailable; allowing request", exc_info=True)
            return await call_next(request)

        if not allowed:
            logger.info("Rate limited %s %s for %s", request.method, request.url.path, client_key)
            return JSONResponse(
                {"detail": "Too Many Requests"},
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                headers={"Retry-After": str(limiter.retry_after())},
            )

        return await call_next(request)

    def _get_limiter(self) -> RateLimiter | None:
        # The factory owns caching so set_rate_limiter() swaps take effect.
        try:
            return self.limiter_factory()
        except Exception:  # pragma: no cover - misconfigured Redis URL
            logger.warning("Could not build rate limiter", exc_info=True)
            return None
