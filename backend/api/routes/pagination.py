"""Offset pagination helpers shared by list endpoints."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from fastapi import Response

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20
NEXT_OFFSET_HEADER = "X-Next-Offset"

RowT = TypeVar("RowT")


def set_next_offset_header(
    response: Response,
    *,
    offset: int,
    limit: int,
    has_more: bool,
) -> None:
    if has_more:
        response.headers[NEXT_OFFSET_HEADER] = str(offset + limit)


def trim_page(
    rows: Sequence[RowT],
    *,
    response: Response,
    offset: int,
    limit: int,
) -> list[RowT]:
    """Cut a ``limit + 1`` fetch down to one page and advertise the next offset."""
    has_more = len(rows) > limit
    set_next_offset_header(response, offset=offset, limit=limit, has_more=has_more)
    return list(rows[:limit])
