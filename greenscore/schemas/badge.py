"""Pydantic schemas for seeded badge definitions.

Definitions are loaded once from YAML at startup and never mutated, so the
models are frozen.
"""

from pydantic import BaseModel, ConfigDict, Field

from greenscore.schemas.enums import BadgeCategory, UserBadgeCategory


class BadgeDefinition(BaseModel):
    """One of the 20 eco-practice claims a shop can be voted on."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Stable slug, e.g. 'plastic-free'")
    name: str = Field(min_length=1, description="Display name, e.g. 'Plastic-Free Champ'")
    description: str = Field(default="", description="What voters are confirming")
    category: BadgeCategory = Field(description="plastic, energy, operations, or community")
    icon: str = Field(default="", description="Emoji shown next to the badge")


class UserBadgeDefinition(BaseModel):
    """A customer achievement badge, earned through reporting activity."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    category: UserBadgeCategory
    icon: str = ""
    requirement_type: str = Field(description="Metric the requirement is measured on, e.g. 'accepted_reports'")
    requirement_value: int = Field(ge=0, description="Target value for the requirement metric")


class CategoryInfo(BaseModel):
    """Display metadata for a badge category."""

    model_config = ConfigDict(frozen=True)

    name: str
    icon: str
