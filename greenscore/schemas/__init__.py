"""Enums and Pydantic schemas shared across the engine, stores and services."""

from greenscore.schemas.badge import BadgeDefinition, CategoryInfo, UserBadgeDefinition
from greenscore.schemas.enums import BadgeCategory, BadgeLevel, UserBadgeCategory, VoteType
from greenscore.schemas.events import ScoreRecomputedEvent

__all__ = [
    # Enums
    "BadgeCategory",
    "BadgeLevel",
    "UserBadgeCategory",
    "VoteType",
    # Models
    "BadgeDefinition",
    "CategoryInfo",
    "UserBadgeDefinition",
    "ScoreRecomputedEvent",
]
