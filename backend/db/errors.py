"""Classify integrity errors across the SQLite and PostgreSQL drivers."""

from __future__ import annotations

from typing import Literal

from sqlalchemy.exc import IntegrityError

IntegrityKind = Literal["unique", "foreign_key", "check", "other"]

_SQLSTATE_KINDS: dict[str, IntegrityKind] = {
    "23505": "unique",
    "23503": "foreign_key",
    "23514": "check",
}
# SQLite reports no SQLSTATE, only a message.
_MESSAGE_KINDS: tuple[tuple[str, IntegrityKind], ...] = (
    ("unique constraint", "unique"),
    ("duplicate key", "unique"),
    ("foreign key constraint", "foreign_key"),
    ("check constraint", "check"),
)


def integrity_error_kind(error: IntegrityError) -> IntegrityKind:
    original = getattr(error, "orig", None)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate in _SQLSTATE_KINDS:
        return _SQLSTATE_KINDS[sqlstate]

    message = str(original or error).lower()
    for needle, kind in _MESSAGE_KINDS:
        if needle in message:
            return kind
    return "other"


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True when the IntegrityError indicates a unique-constraint conflict."""
    return integrity_error_kind(error) == "unique"


__all__ = ["IntegrityKind", "integrity_error_kind", "is_unique_violation"]
