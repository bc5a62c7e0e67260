"""SQLModel models package."""

from .article import Article
from .counters import COUNTER_COLUMNS, InteractionCounters
from .interaction import ENTITY_TYPE_VALUES, INTERACTION_KIND_VALUES, Interaction
from .post import Post
from .project import Project
from .user import User

__all__ = [
    "User",
    "Project",
    "Post",
    "Article",
    "Interaction",
    "InteractionCounters",
    "COUNTER_COLUMNS",
    "ENTITY_TYPE_VALUES",
    "INTERACTION_KIND_VALUES",
]
