"""Database seed script for local development.

Usage:
    uv run python scripts/seed.py

Creates a few demo creators with projects, posts and articles, then has them
like, follow and watch each other through the interaction service so every
counter starts out consistent.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core.security import hash_password  # noqa: E402
from db.session import AsyncSessionMaker  # noqa: E402
from models import Article, Post, Project, User  # noqa: E402
from services.entities import EntityType  # noqa: E402
from services.interactions import (  # noqa: E402
    InteractionConflictError,
    InteractionKind,
    create_interaction,
)

DEFAULT_PASSWORD = "password123"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


@dataclass(frozen=True)
class SeedUser:
    username: str
    email: str
    name: str
    bio: str


@dataclass(frozen=True)
class SeedContent:
    username: str
    entity_type: EntityType
    title: str
    text: str


SEED_USERS: Sequence[SeedUser] = [
    SeedUser("demo_alex", "alex@example.com", "Alex Demo", "Builds tiny synths."),
    SeedUser("demo_sam", "sam@example.com", "Sam Demo", "Writes about type systems."),
    SeedUser("demo_kai", "kai@example.com", "Kai Demo", "Ships side projects weekly."),
]

SEED_CONTENT: Sequence[SeedContent] = [
    SeedContent("demo_alex", EntityType.PROJECT, "Pocket synth", "A four voice synth on a breadboard."),
    SeedContent("demo_alex", EntityType.POST, "Soldering day", "Finally fixed the ground loop."),
    SeedContent("demo_sam", EntityType.ARTICLE, "Gradual typing in practice", "Notes from a large migration."),
    SeedContent("demo_sam", EntityType.POST, "New draft up", "Feedback welcome."),
    SeedContent("demo_kai", EntityType.PROJECT, "Weekend tracker", "Habit tracking without the guilt."),
]


async def get_or_create_user(session: AsyncSession, payload: SeedUser) -> User:
    result = await session.execute(select(User).where(_eq(User.username, payload.username)))
    user = result.scalar_one_or_none()
    if user:
        return user

    user = User(
        username=payload.username,
        email=payload.email,
        name=payload.name,
        bio=payload.bio,
        password_hash=hash_password(DEFAULT_PASSWORD),
    )
    session.add(user)
    await session.flush()
    return user


async def ensure_content(
    session: AsyncSession,
    users: dict[str, User],
    items: Sequence[SeedContent],
) -> list[tuple[EntityType, str]]:
    targets: list[tuple[EntityType, str]] = []
    for item in items:
        owner_id = users[item.username].id
        if item.entity_type is EntityType.PROJECT:
            model: Any = Project
            owner_column: Any = Project.owner_id
        elif item.entity_type is EntityType.POST:
            model, owner_column = Post, Post.author_id
        else:
            model, owner_column = Article, Article.author_id

        result = await session.execute(
            select(model).where(_eq(owner_column, owner_id), _eq(model.title, item.title))
        )
        entity = result.scalar_one_or_none()
        if entity is None:
            if item.entity_type is EntityType.PROJECT:
                entity = Project(owner_id=owner_id, title=item.title, description=item.text)
            elif item.entity_type is EntityType.POST:
                entity = Post(author_id=owner_id, title=item.title, content=item.text)
            else:
                entity = Article(author_id=owner_id, title=item.title, body=item.text)
            session.add(entity)
            await session.flush()
        targets.append((item.entity_type, entity.id))
    return targets


async def ensure_interaction(
    session: AsyncSession,
    *,
    kind: InteractionKind,
    user_id: str,
    entity_type: EntityType,
    entity_id: str,
) -> bool:
    try:
        await create_interaction(
            session,
            kind=kind,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
        )
    except InteractionConflictError:
        return False
    return True


async def seed() -> None:
    async with AsyncSessionMaker() as session:
        users: dict[str, User] = {}
        for payload in SEED_USERS:
            user = await get_or_create_user(session, payload)
            users[user.username] = user

        targets = await ensure_content(session, users, SEED_CONTENT)
        await session.commit()

        # A rejected duplicate rolls the session back and expires loaded rows.
        user_ids = [user.id for user in users.values()]
        created = 0
        for user_id in user_ids:
            for other_id in user_ids:
                if other_id != user_id:
                    created += await ensure_interaction(
                        session,
                        kind=InteractionKind.FOLLOW,
                        user_id=user_id,
                        entity_type=EntityType.USER,
                        entity_id=other_id,
                    )
            for entity_type, entity_id in targets:
                created += await ensure_interaction(
                    session,
                    kind=InteractionKind.LIKE,
                    user_id=user_id,
                    entity_type=entity_type,
                    entity_id=entity_id,
                )
                if entity_type is EntityType.PROJECT:
                    created += await ensure_interaction(
                        session,
                        kind=InteractionKind.WATCH,
                        user_id=user_id,
                        entity_type=entity_type,
                        entity_id=entity_id,
                    )

    print("Seed data inserted.")
    print("   Users:", ", ".join(payload.username for payload in SEED_USERS))
    print("   Default password:", DEFAULT_PASSWORD)
    print("   Content items:", len(SEED_CONTENT))
    print("   New interactions:", created)


if __name__ == "__main__":
    asyncio.run(seed())
