"""Maintenance script to rebuild denormalized interaction counters.

Usage:
    uv run python scripts/reconcile_interaction_counts.py

Environment overrides:
    RECONCILE_KINDS=like,follow,watch
    RECONCILE_ENTITY_TYPES=user,project,post,article
"""

from __future__ import annotations

import asyncio
import os
import sys
from enum import Enum
from pathlib import Path
from time import perf_counter
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from db.session import AsyncSessionMaker  # noqa: E402
from services.entities import EntityType  # noqa: E402
from services.interactions import InteractionKind, reconcile_counters  # noqa: E402

KINDS_ENV = "RECONCILE_KINDS"
ENTITY_TYPES_ENV = "RECONCILE_ENTITY_TYPES"

EnumT = TypeVar("EnumT", bound=Enum)


def _parse_choice_list(
    raw_value: str | None,
    *,
    choices: type[EnumT],
    label: str,
) -> list[EnumT]:
    """Parse a comma list of enum values; blank means every member."""
    if raw_value is None or raw_value.strip() == "":
        return list(choices)

    parsed: list[EnumT] = []
    for item in raw_value.split(","):
        token = item.strip().lower()
        if not token:
            continue
        try:
            member = choices(token)
        except ValueError as exc:
            allowed = ", ".join(str(choice.value) for choice in choices)
            raise ValueError(f"{label} has unknown value {token!r} (allowed: {allowed})") from exc
        if member not in parsed:
            parsed.append(member)
    if not parsed:
        raise ValueError(f"{label} must name at least one value")
    return parsed


async def reconcile(
    kinds: list[InteractionKind],
    entity_types: list[EntityType],
    *,
    session_maker: async_sessionmaker[AsyncSession] = AsyncSessionMaker,
) -> dict[tuple[InteractionKind, EntityType], int]:
    corrected: dict[tuple[InteractionKind, EntityType], int] = {}
    for kind in kinds:
        for entity_type in entity_types:
            async with session_maker() as session:
                corrected[(kind, entity_type)] = await reconcile_counters(
                    session,
                    kind=kind,
                    entity_type=entity_type,
                )
    return corrected


async def run() -> None:
    kinds = _parse_choice_list(
        os.getenv(KINDS_ENV),
        choices=InteractionKind,
        label=KINDS_ENV,
    )
    entity_types = _parse_choice_list(
        os.getenv(ENTITY_TYPES_ENV),
        choices=EntityType,
        label=ENTITY_TYPES_ENV,
    )

    started_at = perf_counter()
    corrected = await reconcile(kinds, entity_types)
    for (kind, entity_type), rows in corrected.items():
        if rows:
            print(f"Corrected {rows} {kind.value} counter(s) on {entity_type.value}")

    elapsed_ms = int((perf_counter() - started_at) * 1000)
    print(
        "Interaction counter reconcile complete: "
        f"pairs_checked={len(corrected)}, rows_corrected={sum(corrected.values())}, "
        f"elapsed_ms={elapsed_ms}"
    )


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
