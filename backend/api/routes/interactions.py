"""Like, follow and watch endpoints, built once per interaction kind."""

from __future__ import annotations

from datetime import datetime
from typing import Any, NoReturn

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field, create_model
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db
from models import Interaction, User
from services.entities import EntityType
from services.interactions import (
    InteractionConflictError,
    InteractionError,
    InteractionKind,
    KindProfile,
    SelfInteractionError,
    TargetNotFoundError,
    count_for_entity,
    count_for_user,
    create_interaction,
    delete_interaction,
    get_interaction,
    kind_profile,
    list_for_user,
)
from .pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, trim_page

ENTITY_ID_MAX_LENGTH = 36


class InteractionTarget(BaseModel):
    entity_type: EntityType
    entity_id: str = Field(min_length=1, max_length=ENTITY_ID_MAX_LENGTH)


class InteractionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: InteractionKind
    user_id: str
    entity_type: EntityType
    entity_id: str
    created_at: datetime


class InteractionMutationResponse(InteractionRecord):
    count: int


class CountResponse(BaseModel):
    count: int


def _raise_for_interaction_error(exc: InteractionError) -> NoReturn:
    if isinstance(exc, InteractionConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, TargetNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, SelfInteractionError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    raise exc


def _mutation_response(interaction: Interaction, count: int) -> InteractionMutationResponse:
    record = InteractionRecord.model_validate(interaction)
    return InteractionMutationResponse(**record.model_dump(), count=count)


def _status_model(profile: KindProfile) -> type[BaseModel]:
    fields: dict[str, Any] = {profile.status_key: (bool, ...)}
    return create_model(f"{profile.label}StatusResponse", **fields)


def build_interaction_router(kind: InteractionKind) -> APIRouter:
    """Return the router for one interaction kind, mounted at ``/<kinds>``."""
    profile = kind_profile(kind)
    status_model = _status_model(profile)
    router = APIRouter(prefix=f"/{profile.route_name}", tags=[profile.route_name])

    @router.post(
        "",
        status_code=status.HTTP_201_CREATED,
        response_model=InteractionMutationResponse,
        name=f"create_{profile.kind.value}",
    )
    async def create(
        payload: InteractionTarget,
        current_user: User = Depends(get_current_user),
        session: AsyncSession = Depends(get_db),
    ) -> InteractionMutationResponse:
        user_id = current_user.id
        try:
            interaction = await create_interaction(
                session,
                kind=profile.kind,
                user_id=user_id,
                entity_type=payload.entity_type,
                entity_id=payload.entity_id,
            )
        except InteractionError as exc:
            _raise_for_interaction_error(exc)

        count = await count_for_entity(
            session,
            kind=profile.kind,
            entity_type=payload.entity_type,
            entity_id=payload.entity_id,
        )
        return _mutation_response(interaction, count)

    @router.delete(
        "",
        response_model=InteractionMutationResponse,
        name=f"delete_{profile.kind.value}",
    )
    async def remove(
        payload: InteractionTarget = Body(...),
        current_user: User = Depends(get_current_user),
        session: AsyncSession = Depends(get_db),
    ) -> InteractionMutationResponse:
        user_id = current_user.id
        interaction = await delete_interaction(
            session,
            kind=profile.kind,
            user_id=user_id,
            entity_type=payload.entity_type,
            entity_id=payload.entity_id,
        )
        if interaction is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{profile.label} not found",
            )

        count = await count_for_entity(
            session,
            kind=profile.kind,
            entity_type=payload.entity_type,
            entity_id=payload.entity_id,
        )
        return _mutation_response(interaction, count)

    @router.get(
        "/status",
        response_model=status_model,
        name=f"{profile.kind.value}_status",
    )
    async def get_status(
        entity_type: EntityType = Query(...),
        entity_id: str = Query(..., min_length=1, max_length=ENTITY_ID_MAX_LENGTH),
        current_user: User = Depends(get_current_user),
        session: AsyncSession = Depends(get_db),
    ) -> dict[str, bool]:
        user_id = current_user.id
        interaction = await get_interaction(
            session,
            kind=profile.kind,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        return {profile.status_key: interaction is not None}

    @router.get(
        "/count",
        response_model=CountResponse,
        name=f"{profile.kind.value}_count",
    )
    async def get_count(
        entity_type: EntityType = Query(...),
        entity_id: str = Query(..., min_length=1, max_length=ENTITY_ID_MAX_LENGTH),
        session: AsyncSession = Depends(get_db),
    ) -> CountResponse:
        count = await count_for_entity(
            session,
            kind=profile.kind,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        return CountResponse(count=count)

    @router.get(
        "/user-count",
        response_model=CountResponse,
        name=f"{profile.kind.value}_user_count",
    )
    async def get_user_count(
        entity_type: EntityType = Query(...),
        current_user: User = Depends(get_current_user),
        session: AsyncSession = Depends(get_db),
    ) -> CountResponse:
        count = await count_for_user(
            session,
            kind=profile.kind,
            user_id=current_user.id,
            entity_type=entity_type,
        )
        return CountResponse(count=count)

    @router.get(
        "/mine",
        response_model=list[InteractionRecord],
        name=f"list_my_{profile.route_name}",
    )
    async def list_mine(
        response: Response,
        entity_type: EntityType = Query(...),
        offset: int = Query(0, ge=0),
        limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
        current_user: User = Depends(get_current_user),
        session: AsyncSession = Depends(get_db),
    ) -> list[InteractionRecord]:
        rows = await list_for_user(
            session,
            kind=profile.kind,
            user_id=current_user.id,
            entity_type=entity_type,
            offset=offset,
            limit=limit + 1,
        )
        page = trim_page(rows, response=response, offset=offset, limit=limit)
        return [InteractionRecord.model_validate(row) for row in page]

    return router


likes_router = build_interaction_router(InteractionKind.LIKE)
follows_router = build_interaction_router(InteractionKind.FOLLOW)
watches_router = build_interaction_router(InteractionKind.WATCH)

__all__ = [
    "build_interaction_router",
    "follows_router",
    "likes_router",
    "watches_router",
]
