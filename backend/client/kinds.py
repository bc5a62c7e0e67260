"""Interaction vocabulary shared by the API and its clients.

Kept free of server imports so UI code can use the client without SQLAlchemy,
Redis or a database driver installed.
"""

from __future__ import annotations

from enum import Enum


class InteractionKind(str, Enum):
    LIKE = "like"
    FOLLOW = "follow"
    WATCH = "watch"


class EntityType(str, Enum):
    USER = "user"
    PROJECT = "project"
    POST = "post"
    ARTICLE = "article"


# URL segment under /api for each kind.
ROUTE_NAMES: dict[InteractionKind, str] = {
    InteractionKind.LIKE: "likes",
    InteractionKind.FOLLOW: "follows",
    InteractionKind.WATCH: "watches",
}

# Boolean key in the GET /status payload.
STATUS_KEYS: dict[InteractionKind, str] = {
    InteractionKind.LIKE: "liked",
    InteractionKind.FOLLOW: "following",
    InteractionKind.WATCH: "watching",
}


__all__ = ["EntityType", "InteractionKind", "ROUTE_NAMES", "STATUS_KEYS"]
