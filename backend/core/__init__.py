"""Core configuration, security and logging."""

from .config import Settings, settings
from .logging import configure_logging
from .security import (
    create_access_token,
    decode_token,
    hash_password,
    needs_rehash,
    verify_password,
)

__all__ = [
    "Settings",
    "settings",
    "configure_logging",
    "create_access_token",
    "decode_token",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
