"""Public profile and portfolio endpoints."""

from __future__ import annotations

from typing import Any, cast

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from api.deps import get_db
from core import settings
from models import COUNTER_COLUMNS, Article, Post, Project, User
from services.accounts import find_user_by_username
from .content import ArticleResponse, PostResponse, ProjectResponse

router = APIRouter(prefix="/users", tags=["users"])


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _desc(column: Any) -> Any:
    return cast(Any, column).desc()


class UserProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    name: str | None = None
    bio: str | None = None
    likes_count: int = 0
    follows_count: int = 0
    watches_count: int = 0


class InteractionTotals(BaseModel):
    likes: int = 0
    follows: int = 0
    watches: int = 0


class PortfolioResponse(BaseModel):
    user: UserProfile
    projects: list[ProjectResponse]
    posts: list[PostResponse]
    articles: list[ArticleResponse]
    totals: InteractionTotals


async def _get_user_or_404(session: AsyncSession, username: str) -> User:
    user = await find_user_by_username(session, username)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def _newest(
    session: AsyncSession,
    model: Any,
    owner_column: Any,
    owner_id: str,
    limit: int,
) -> list[Any]:
    result = await session.execute(
        select(model)
        .where(_eq(owner_column, owner_id))
        .order_by(_desc(model.created_at), _desc(model.id))
        .limit(limit)
    )
    return list(result.scalars().all())


async def _counter_sums(
    session: AsyncSession,
    model: Any,
    owner_column: Any,
    owner_id: str,
) -> tuple[int, ...]:
    columns = [func.coalesce(func.sum(getattr(model, name)), 0) for name in COUNTER_COLUMNS]
    result = await session.execute(select(*columns).where(_eq(owner_column, owner_id)))
    row = result.one()
    return tuple(int(value) for value in row)


@router.get("/{username}", response_model=UserProfile)
async def get_profile(
    username: str,
    session: AsyncSession = Depends(get_db),
) -> UserProfile:
    user = await _get_user_or_404(session, username)
    return UserProfile.model_validate(user)


@router.get("/{username}/portfolio", response_model=PortfolioResponse)
async def get_portfolio(
    username: str,
    session: AsyncSession = Depends(get_db),
) -> PortfolioResponse:
    """Newest projects, posts and articles of a creator plus the interaction
    totals received across everything they published."""
    user = await _get_user_or_404(session, username)
    user_id = user.id
    limit = settings.portfolio_section_limit

    sections = (
        (Project, Project.owner_id),
        (Post, Post.author_id),
        (Article, Article.author_id),
    )
    totals = [0] * len(COUNTER_COLUMNS)
    for model, owner_column in sections:
        sums = await _counter_sums(session, model, owner_column, user_id)
        totals = [current + extra for current, extra in zip(totals, sums)]

    projects = await _newest(session, Project, Project.owner_id, user_id, limit)
    posts = await _newest(session, Post, Post.author_id, user_id, limit)
    articles = await _newest(session, Article, Article.author_id, user_id, limit)

    likes, follows, watches = totals
    return PortfolioResponse(
        user=UserProfile.model_validate(user),
        projects=[ProjectResponse.model_validate(item) for item in projects],
        posts=[PostResponse.model_validate(item) for item in posts],
        articles=[ArticleResponse.model_validate(item) for item in articles],
        totals=InteractionTotals(likes=likes, follows=follows, watches=watches),
    )


__all__ = ["router"]
