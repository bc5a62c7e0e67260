"""Project, post and article endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, cast

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from api.deps import get_current_user, get_db
from models import Article, Post, Project, User
from services.entities import EntityType
from services.interactions import delete_entity_interactions

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_TAGS = 20


class CounterFields(BaseModel):
    likes_count: int = 0
    follows_count: int = 0
    watches_count: int = 0


class ProjectCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    description: str | None = None
    tags: list[str] = Field(default_factory=list, max_length=MAX_TAGS)


class ProjectResponse(CounterFields):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    title: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime


class PostCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    content: str | None = None


class PostResponse(CounterFields):
    model_config = ConfigDict(from_attributes=True)

    id: str
    author_id: str
    title: str
    content: str | None = None
    created_at: datetime


class ArticleCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    body: str | None = None


class ArticleResponse(CounterFields):
    model_config = ConfigDict(from_attributes=True)

    id: str
    author_id: str
    title: str
    body: str | None = None
    created_at: datetime


@dataclass(frozen=True)
class ContentProfile:
    entity_type: EntityType
    route_name: str
    label: str
    model: type[SQLModel]
    owner_field: str
    response_model: type[BaseModel]


PROJECTS = ContentProfile(
    entity_type=EntityType.PROJECT,
    route_name="projects",
    label="Project",
    model=Project,
    owner_field="owner_id",
    response_model=ProjectResponse,
)
POSTS = ContentProfile(
    entity_type=EntityType.POST,
    route_name="posts",
    label="Post",
    model=Post,
    owner_field="author_id",
    response_model=PostResponse,
)
ARTICLES = ContentProfile(
    entity_type=EntityType.ARTICLE,
    route_name="articles",
    label="Article",
    model=Article,
    owner_field="author_id",
    response_model=ArticleResponse,
)


async def _load_or_404(
    session: AsyncSession,
    profile: ContentProfile,
    entity_id: str,
) -> Any:
    entity = await session.get(profile.model, entity_id)
    if entity is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{profile.label} not found",
        )
    return entity


async def _save(session: AsyncSession, entity: SQLModel) -> SQLModel:
    session.add(entity)
    await session.commit()
    logger.info("Created %s %s", type(entity).__name__.lower(), cast(Any, entity).id)
    return entity


def build_content_router(profile: ContentProfile) -> APIRouter:
    """Read and owner-only delete routes for one content type."""
    router = APIRouter(prefix=f"/{profile.route_name}", tags=[profile.route_name])

    @router.get(
        "/{entity_id}",
        response_model=profile.response_model,
        name=f"get_{profile.entity_type.value}",
    )
    async def get_entity(
        entity_id: str,
        session: AsyncSession = Depends(get_db),
    ) -> Any:
        entity = await _load_or_404(session, profile, entity_id)
        return profile.response_model.model_validate(entity)

    @router.delete(
        "/{entity_id}",
        status_code=status.HTTP_200_OK,
        name=f"delete_{profile.entity_type.value}",
    )
    async def delete_entity(
        entity_id: str,
        current_user: User = Depends(get_current_user),
        session: AsyncSession = Depends(get_db),
    ) -> dict[str, str]:
        viewer_id = current_user.id
        entity = await _load_or_404(session, profile, entity_id)
        if getattr(entity, profile.owner_field) != viewer_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Not allowed to delete this {profile.entity_type.value}",
            )

        removed = await delete_entity_interactions(
            session,
            entity_type=profile.entity_type,
            entity_id=entity_id,
        )
        await session.delete(entity)
        await session.commit()
        logger.info(
            "Deleted %s %s with %d interaction(s)",
            profile.entity_type.value,
            entity_id,
            removed,
        )
        return {"detail": "Deleted"}

    return router


projects_router = build_content_router(PROJECTS)
posts_router = build_content_router(POSTS)
articles_router = build_content_router(ARTICLES)


@projects_router.post("", status_code=status.HTTP_201_CREATED, response_model=ProjectResponse)
async def create_project(
    payload: ProjectCreateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    project = Project(owner_id=current_user.id, **payload.model_dump())
    return ProjectResponse.model_validate(await _save(session, project))


@posts_router.post("", status_code=status.HTTP_201_CREATED, response_model=PostResponse)
async def create_post(
    payload: PostCreateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> PostResponse:
    post = Post(author_id=current_user.id, **payload.model_dump())
    return PostResponse.model_validate(await _save(session, post))


@articles_router.post("", status_code=status.HTTP_201_CREATED, response_model=ArticleResponse)
async def create_article(
    payload: ArticleCreateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> ArticleResponse:
    article = Article(author_id=current_user.id, **payload.model_dump())
    return ArticleResponse.model_validate(await _save(session, article))


__all__ = [
    "ArticleResponse",
    "PostResponse",
    "ProjectResponse",
    "articles_router",
    "posts_router",
    "projects_router",
]
