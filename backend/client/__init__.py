"""Async client for the interaction API."""

from .api import InteractionApiClient, InteractionRequestError
from .kinds import EntityType, InteractionKind
from .toggle import InteractionToggle

__all__ = [
    "EntityType",
    "InteractionApiClient",
    "InteractionKind",
    "InteractionRequestError",
    "InteractionToggle",
]
