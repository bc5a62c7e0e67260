"""Closed registry of entity types that can receive interactions."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from client.kinds import EntityType
from models import Article, Post, Project, User
from models.counters import InteractionCounters

ENTITY_MODELS: dict[EntityType, type[InteractionCounters]] = {
    EntityType.USER: User,
    EntityType.PROJECT: Project,
    EntityType.POST: Post,
    EntityType.ARTICLE: Article,
}


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def entity_model(entity_type: EntityType) -> type[InteractionCounters]:
    return ENTITY_MODELS[EntityType(entity_type)]


def entity_id_column(entity_type: EntityType) -> ColumnElement[str]:
    model = cast(Any, entity_model(entity_type))
    return cast(ColumnElement[str], model.id)


async def entity_exists(
    session: AsyncSession,
    *,
    entity_type: EntityType,
    entity_id: str,
) -> bool:
    id_column = entity_id_column(entity_type)
    result = await session.execute(
        select(id_column).where(_eq(id_column, entity_id)).limit(1)
    )
    return result.scalar_one_or_none() is not None


__all__ = [
    "ENTITY_MODELS",
    "EntityType",
    "entity_exists",
    "entity_id_column",
    "entity_model",
]
