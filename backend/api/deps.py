"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from core import decode_token
from db.session import get_session
from models import User

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=_BEARER_CHALLENGE,
    )


def _bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("authorization")
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return value.strip() or None


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_db),
) -> User:
    token = _bearer_token(request)
    if token is None:
        raise _unauthorized("Authentication required")

    try:
        payload = decode_token(token)
    except ValueError as exc:
        raise _unauthorized("Invalid token") from exc

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise _unauthorized("Invalid token")

    user = await session.get(User, subject)
    if user is None:
        raise _unauthorized("Invalid token")
    return user


__all__ = ["get_current_user", "get_db"]
