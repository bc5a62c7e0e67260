"""Denormalized interaction counters shared by every interaction target."""

from __future__ import annotations

from sqlalchemy import text
from sqlmodel import Field, SQLModel

COUNTER_COLUMNS = ("likes_count", "follows_count", "watches_count")


class InteractionCounters(SQLModel):
    """Cached per-kind interaction totals, maintained by the interaction service."""

    likes_count: int = Field(
        default=0,
        nullable=False,
        sa_column_kwargs={"server_default": text("0")},
    )
    follows_count: int = Field(
        default=0,
        nullable=False,
        sa_column_kwargs={"server_default": text("0")},
    )
    watches_count: int = Field(
        default=0,
        nullable=False,
        sa_column_kwargs={"server_default": text("0")},
    )
