"""Business logic services."""

from .entities import EntityType
from .interactions import (
    InteractionConflictError,
    InteractionError,
    InteractionKind,
    SelfInteractionError,
    TargetNotFoundError,
)
from .rate_limiter import (
    RateLimitMiddleware,
    RateLimiter,
    get_rate_limiter,
    set_rate_limiter,
)

__all__ = [
    "EntityType",
    "InteractionKind",
    "InteractionError",
    "InteractionConflictError",
    "SelfInteractionError",
    "TargetNotFoundError",
    "RateLimiter",
    "RateLimitMiddleware",
    "get_rate_limiter",
    "set_rate_limiter",
]
