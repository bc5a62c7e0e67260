"""Authentication endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db
from core import create_access_token, hash_password, needs_rehash
from db.errors import is_unique_violation
from models import User
from services.accounts import (
    normalize_email,
    registration_conflict_exists,
    resolve_login_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MAX_PROFILE_BIO_LENGTH = 500
_REGISTRATION_CONFLICT = "User with that username or email already exists"


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    name: str | None = Field(default=None, max_length=80)
    bio: str | None = Field(default=None, max_length=MAX_PROFILE_BIO_LENGTH)

    @field_validator("username")
    @classmethod
    def _reject_email_like_username(cls, value: str) -> str:
        normalized = value.strip()
        if "@" in normalized:
            raise ValueError("Username cannot contain '@'")
        return normalized


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: EmailStr
    name: str | None = None
    bio: str | None = None
    likes_count: int = 0
    follows_count: int = 0
    watches_count: int = 0


class LoginRequest(BaseModel):
    # One field accepts either the username or the email address.
    username: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=8, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


def _conflict() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=_REGISTRATION_CONFLICT,
    )


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db),
) -> UserResponse:
    normalized_email = normalize_email(str(payload.email))
    if await registration_conflict_exists(
        session,
        username=payload.username,
        normalized_email=normalized_email,
    ):
        raise _conflict()

    user = User(
        username=payload.username,
        email=normalized_email,
        password_hash=hash_password(payload.password),
        name=payload.name,
        bio=payload.bio,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            raise _conflict() from exc
        raise

    logger.info("Registered user %s", user.id)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db),
) -> TokenResponse:
    user = await resolve_login_user(
        session,
        identifier=payload.username.strip(),
        password=payload.password,
    )
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(payload.password)
        await session.commit()

    if user.id is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="User record is missing an identifier",
        )

    return TokenResponse(access_token=create_access_token(str(user.id)))


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)


__all__ = ["UserResponse", "router"]
