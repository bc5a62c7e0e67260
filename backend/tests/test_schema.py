"""Schema regression tests against the migrated database."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from db.errors import integrity_error_kind
from models import Interaction, User


async def _inspect(db_session: AsyncSession, method: str, table: str) -> list[dict[str, Any]]:
    bind = db_session.bind
    assert isinstance(bind, AsyncEngine)
    async with bind.connect() as conn:
        return await conn.run_sync(
            lambda sync_conn: getattr(inspect(sync_conn), method)(table)
        )


@pytest.mark.asyncio
async def test_interactions_have_lookup_indexes(db_session: AsyncSession) -> None:
    indexes = await _inspect(db_session, "get_indexes", "interactions")
    names = {index["name"] for index in indexes}

    assert "ix_interactions_kind_entity" in names
    assert "ix_interactions_kind_user_created_at" in names


@pytest.mark.asyncio
async def test_interactions_unique_per_user_target_and_kind(db_session: AsyncSession) -> None:
    constraints = await _inspect(db_session, "get_unique_constraints", "interactions")

    assert any(
        sorted(constraint["column_names"]) == ["entity_id", "entity_type", "kind", "user_id"]
        for constraint in constraints
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("table", ["users", "projects", "posts", "articles"])
async def test_targets_carry_counter_columns(db_session: AsyncSession, table: str) -> None:
    columns = {
        column["name"]: column
        for column in await _inspect(db_session, "get_columns", table)
    }

    for name in ("likes_count", "follows_count", "watches_count"):
        assert name in columns
        assert columns[name]["nullable"] is False


@pytest.mark.asyncio
async def test_unknown_kind_is_rejected_by_check_constraint(db_session: AsyncSession) -> None:
    user = User(username="check_user", email="check@example.com", password_hash="x")
    db_session.add(user)
    await db_session.commit()

    db_session.add(
        Interaction(
            kind="bookmark",
            user_id=user.id,
            entity_type="post",
            entity_id="p1",
        )
    )
    with pytest.raises(IntegrityError) as excinfo:
        await db_session.commit()
    await db_session.rollback()

    assert integrity_error_kind(excinfo.value) == "check"
