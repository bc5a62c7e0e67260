"""Polymorphic like/follow/watch record."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    func,
)
from sqlmodel import Field, SQLModel

INTERACTION_KIND_VALUES = ("like", "follow", "watch")
ENTITY_TYPE_VALUES = ("user", "project", "post", "article")


def _in_list(column: str, values: tuple[str, ...]) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({quoted})"


class Interaction(SQLModel, table=True):
    """One user's like, follow or watch of a user, project, post or article.

    ``entity_id`` has no foreign key since the target table depends on
    ``entity_type``. The unique constraint is what keeps a user from holding
    two interactions of the same kind on the same target.
    """

    __tablename__ = "interactions"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "entity_type",
            "entity_id",
            "kind",
            name="uq_interactions_user_entity_kind",
        ),
        CheckConstraint(
            _in_list("kind", INTERACTION_KIND_VALUES),
            name="ck_interactions_kind",
        ),
        CheckConstraint(
            _in_list("entity_type", ENTITY_TYPE_VALUES),
            name="ck_interactions_entity_type",
        ),
        Index("ix_interactions_kind_entity", "kind", "entity_type", "entity_id"),
        Index(
            "ix_interactions_kind_user_created_at",
            "kind",
            "user_id",
            "entity_type",
            "created_at",
        ),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    kind: str = Field(sa_column=Column(String(16), nullable=False))
    user_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    entity_type: str = Field(sa_column=Column(String(16), nullable=False))
    entity_id: str = Field(sa_column=Column(String(36), nullable=False))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
