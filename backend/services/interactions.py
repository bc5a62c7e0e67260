"""Like, follow and watch bookkeeping shared by every interaction kind.

One table (``interactions``) holds all three kinds. Every mutation writes the
interaction row and shifts the matching denormalized counter on the target row
inside the same transaction, so the stored counter and the live row count only
diverge when something bypasses this module. ``reconcile_counters`` repairs
that case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, cast

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from client.kinds import ROUTE_NAMES, STATUS_KEYS, InteractionKind
from db.errors import is_unique_violation
from models import Interaction
from .entities import EntityType, entity_exists, entity_id_column, entity_model

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KindProfile:
    kind: InteractionKind
    route_name: str
    status_key: str
    counter_column: str
    verb: str
    label: str


KIND_PROFILES: dict[InteractionKind, KindProfile] = {
    InteractionKind.LIKE: KindProfile(
        kind=InteractionKind.LIKE,
        route_name=ROUTE_NAMES[InteractionKind.LIKE],
        status_key=STATUS_KEYS[InteractionKind.LIKE],
        counter_column="likes_count",
        verb="liked",
        label="Like",
    ),
    InteractionKind.FOLLOW: KindProfile(
        kind=InteractionKind.FOLLOW,
        route_name=ROUTE_NAMES[InteractionKind.FOLLOW],
        status_key=STATUS_KEYS[InteractionKind.FOLLOW],
        counter_column="follows_count",
        verb="following",
        label="Follow",
    ),
    InteractionKind.WATCH: KindProfile(
        kind=InteractionKind.WATCH,
        route_name=ROUTE_NAMES[InteractionKind.WATCH],
        status_key=STATUS_KEYS[InteractionKind.WATCH],
        counter_column="watches_count",
        verb="watching",
        label="Watch",
    ),
}


class InteractionError(Exception):
    """Base class for interaction failures the API layer maps to 4xx."""


class InteractionConflictError(InteractionError):
    """The user already holds this interaction on the target."""


class TargetNotFoundError(InteractionError):
    """The interaction target does not exist."""


class SelfInteractionError(InteractionError):
    """The interaction would point a user at themselves where that is not allowed."""


def kind_profile(kind: InteractionKind) -> KindProfile:
    return KIND_PROFILES[InteractionKind(kind)]


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _ne(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column != value)


def _desc(column: Any) -> Any:
    return cast(Any, column).desc()


def _target_filters(
    kind: InteractionKind,
    entity_type: EntityType,
    entity_id: str,
) -> list[ColumnElement[bool]]:
    return [
        _eq(Interaction.kind, InteractionKind(kind).value),
        _eq(Interaction.entity_type, EntityType(entity_type).value),
        _eq(Interaction.entity_id, entity_id),
    ]


def _not_found_message(entity_type: EntityType) -> str:
    return f"{EntityType(entity_type).value.capitalize()} not found"


def _counter_attribute(kind: InteractionKind, entity_type: EntityType) -> Any:
    model = entity_model(entity_type)
    return getattr(model, kind_profile(kind).counter_column)


async def _shift_counter(
    session: AsyncSession,
    *,
    kind: InteractionKind,
    entity_type: EntityType,
    entity_id: str,
    delta: int,
) -> int:
    """Apply ``delta`` to the target's counter in SQL, never below zero.

    Returns the number of target rows touched (0 when the target is gone).
    """
    model = entity_model(entity_type)
    counter = _counter_attribute(kind, entity_type)
    shifted = counter + delta
    result = await session.execute(
        update(model)
        .where(_eq(entity_id_column(entity_type), entity_id))
        .values({counter: case((shifted < 0, 0), else_=shifted)})
        .execution_options(synchronize_session=False)
    )
    return int(cast(Any, result).rowcount or 0)


async def get_interaction(
    session: AsyncSession,
    *,
    kind: InteractionKind,
    user_id: str,
    entity_type: EntityType,
    entity_id: str,
) -> Interaction | None:
    result = await session.execute(
        select(Interaction).where(
            _eq(Interaction.user_id, user_id),
            *_target_filters(kind, entity_type, entity_id),
        )
    )
    return result.scalar_one_or_none()


async def create_interaction(
    session: AsyncSession,
    *,
    kind: InteractionKind,
    user_id: str,
    entity_type: EntityType,
    entity_id: str,
) -> Interaction:
    """Insert the interaction and bump the target counter in one transaction.

    Duplicate detection is left to the unique constraint, so two concurrent
    requests for the same triple produce one row and one conflict.
    """
    kind = InteractionKind(kind)
    entity_type = EntityType(entity_type)
    profile = kind_profile(kind)

    if not await entity_exists(session, entity_type=entity_type, entity_id=entity_id):
        raise TargetNotFoundError(_not_found_message(entity_type))

    if (
        kind is InteractionKind.FOLLOW
        and entity_type is EntityType.USER
        and entity_id == user_id
    ):
        raise SelfInteractionError("Cannot follow yourself")

    interaction = Interaction(
        kind=kind.value,
        user_id=user_id,
        entity_type=entity_type.value,
        entity_id=entity_id,
    )
    session.add(interaction)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            logger.info(
                "Duplicate %s rejected: user=%s %s=%s",
                kind.value,
                user_id,
                entity_type.value,
                entity_id,
            )
            raise InteractionConflictError(f"Already {profile.verb}") from exc
        raise

    touched = await _shift_counter(
        session,
        kind=kind,
        entity_type=entity_type,
        entity_id=entity_id,
        delta=1,
    )
    if touched == 0:
        await session.rollback()
        raise TargetNotFoundError(_not_found_message(entity_type))

    await session.commit()
    logger.info(
        "Created %s %s: user=%s %s=%s",
        kind.value,
        interaction.id,
        user_id,
        entity_type.value,
        entity_id,
    )
    return interaction


async def delete_interaction(
    session: AsyncSession,
    *,
    kind: InteractionKind,
    user_id: str,
    entity_type: EntityType,
    entity_id: str,
) -> Interaction | None:
    """Remove the interaction and decrement the counter; None when absent."""
    kind = InteractionKind(kind)
    entity_type = EntityType(entity_type)

    interaction = await get_interaction(
        session,
        kind=kind,
        user_id=user_id,
        entity_type=entity_type,
        entity_id=entity_id,
    )
    if interaction is None:
        return None

    # A concurrent delete of the same row leaves nothing to remove here; the
    # counter must then stay untouched.
    result = await session.execute(
        delete(Interaction)
        .where(_eq(Interaction.id, interaction.id))
        .execution_options(synchronize_session=False)
    )
    if not cast(Any, result).rowcount:
        await session.rollback()
        return None

    await _shift_counter(
        session,
        kind=kind,
        entity_type=entity_type,
        entity_id=entity_id,
        delta=-1,
    )
    await session.commit()
    logger.info(
        "Deleted %s %s: user=%s %s=%s",
        kind.value,
        interaction.id,
        user_id,
        entity_type.value,
        entity_id,
    )
    return interaction


async def count_for_entity(
    session: AsyncSession,
    *,
    kind: InteractionKind,
    entity_type: EntityType,
    entity_id: str,
) -> int:
    """Live number of interactions of ``kind`` on one target."""
    result = await session.execute(
        select(func.count())
        .select_from(Interaction)
        .where(*_target_filters(kind, entity_type, entity_id))
    )
    return int(result.scalar_one() or 0)


async def count_for_user(
    session: AsyncSession,
    *,
    kind: InteractionKind,
    user_id: str,
    entity_type: EntityType,
) -> int:
    """Live number of ``entity_type`` targets the user has interacted with."""
    result = await session.execute(
        select(func.count())
        .select_from(Interaction)
        .where(
            _eq(Interaction.kind, InteractionKind(kind).value),
            _eq(Interaction.user_id, user_id),
            _eq(Interaction.entity_type, EntityType(entity_type).value),
        )
    )
    return int(result.scalar_one() or 0)


async def list_for_user(
    session: AsyncSession,
    *,
    kind: InteractionKind,
    user_id: str,
    entity_type: EntityType,
    offset: int = 0,
    limit: int | None = None,
) -> list[Interaction]:
    query = (
        select(Interaction)
        .where(
            _eq(Interaction.kind, InteractionKind(kind).value),
            _eq(Interaction.user_id, user_id),
            _eq(Interaction.entity_type, EntityType(entity_type).value),
        )
        .order_by(_desc(Interaction.created_at), _desc(Interaction.id))
    )
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    result = await session.execute(query)
    return list(result.scalars().all())


async def get_stored_count(
    session: AsyncSession,
    *,
    kind: InteractionKind,
    entity_type: EntityType,
    entity_id: str,
) -> int | None:
    """Read the denormalized counter; None when the target does not exist."""
    counter = _counter_attribute(kind, entity_type)
    result = await session.execute(
        select(counter).where(_eq(entity_id_column(entity_type), entity_id))
    )
    value = result.scalar_one_or_none()
    return None if value is None else int(value)


async def delete_entity_interactions(
    session: AsyncSession,
    *,
    entity_type: EntityType,
    entity_id: str,
) -> int:
    """Drop every interaction pointing at a target; the caller commits."""
    result = await session.execute(
        delete(Interaction)
        .where(
            _eq(Interaction.entity_type, EntityType(entity_type).value),
            _eq(Interaction.entity_id, entity_id),
        )
        .execution_options(synchronize_session=False)
    )
    return int(cast(Any, result).rowcount or 0)


async def reconcile_counters(
    session: AsyncSession,
    *,
    kind: InteractionKind,
    entity_type: EntityType,
) -> int:
    """Rewrite drifted counters from live counts; returns rows corrected."""
    kind = InteractionKind(kind)
    entity_type = EntityType(entity_type)
    model = entity_model(entity_type)
    counter = _counter_attribute(kind, entity_type)
    live_count = (
        select(func.count(Interaction.id))
        .where(
            _eq(Interaction.kind, kind.value),
            _eq(Interaction.entity_type, entity_type.value),
            _eq(Interaction.entity_id, entity_id_column(entity_type)),
        )
        .scalar_subquery()
    )
    result = await session.execute(
        update(model)
        .where(_ne(counter, live_count))
        .values({counter: live_count})
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    corrected = int(cast(Any, result).rowcount or 0)
    if corrected:
        logger.warning(
            "Reconciled %d %s counter(s) on %s",
            corrected,
            kind.value,
            entity_type.value,
        )
    return corrected


__all__ = [
    "InteractionConflictError",
    "InteractionError",
    "InteractionKind",
    "KIND_PROFILES",
    "KindProfile",
    "SelfInteractionError",
    "TargetNotFoundError",
    "count_for_entity",
    "count_for_user",
    "create_interaction",
    "delete_entity_interactions",
    "delete_interaction",
    "get_interaction",
    "get_stored_count",
    "kind_profile",
    "list_for_user",
    "reconcile_counters",
]
