"""Database engine, sessions and error helpers."""

from .errors import integrity_error_kind, is_unique_violation
from .session import AsyncSessionMaker, async_engine, get_session

__all__ = [
    "AsyncSessionMaker",
    "async_engine",
    "get_session",
    "integrity_error_kind",
    "is_unique_violation",
]
