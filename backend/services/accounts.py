"""Account identity normalization and login resolution."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import verify_password
from models import User


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def normalize_email(value: str) -> str:
    return value.strip().lower()


async def find_user_by_username(
    session: AsyncSession,
    username: str,
) -> User | None:
    result = await session.execute(select(User).where(_eq(User.username, username)))
    return result.scalar_one_or_none()


async def registration_conflict_exists(
    session: AsyncSession,
    *,
    username: str,
    normalized_email: str,
) -> bool:
    lowered_email_column = cast(Any, func.lower(cast(Any, User.email)))
    existing = await session.execute(
        select(User.id)
        .where(
            or_(
                _eq(User.username, username),
                _eq(lowered_email_column, normalized_email),
            )
        )
        .limit(1)
    )
    return existing.scalar_one_or_none() is not None


async def resolve_login_user(
    session: AsyncSession,
    *,
    identifier: str,
    password: str,
) -> User | None:
    """Return the user matching a username or email login, or None."""
    if "@" in identifier:
        lowered_email_column = cast(Any, func.lower(cast(Any, User.email)))
        query = select(User).where(_eq(lowered_email_column, normalize_email(identifier)))
    else:
        query = select(User).where(_eq(User.username, identifier))

    result = await session.execute(query.limit(1))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


__all__ = [
    "find_user_by_username",
    "normalize_email",
    "registration_conflict_exists",
    "resolve_login_user",
]
