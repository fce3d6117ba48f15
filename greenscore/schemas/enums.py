"""Closed enums for badge categories, levels and vote types.

Categories and levels were free-form strings in earlier clients, which let a
typo create an orphan category. Everything now goes through these enums.
"""

from enum import Enum

from greenscore.errors import InvalidArgumentError


class BadgeCategory(str, Enum):
    """Eco-practice group a shop badge belongs to (5 badges each)."""

    PLASTIC = "plastic"  # Plastic & packaging
    ENERGY = "energy"  # Energy & resources
    OPERATIONS = "operations"  # Operations & systems
    COMMUNITY = "community"  # Community & consistency


class UserBadgeCategory(str, Enum):
    """Group a customer achievement badge belongs to."""

    REPORTING = "reporting"
    IMPACT = "impact"
    CONSISTENCY = "consistency"
    COMMUNITY = "community"


class BadgeLevel(str, Enum):
    """Tier earned by an eligible badge.

    Ordered from lowest to highest; NONE covers both ineligible badges and
    eligible badges below the bronze threshold.
    """

    NONE = "none"
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"

    @property
    def rank(self) -> int:
        """Position on the ladder (none=0 .. gold=3)."""
        return {
            "none": 0,
            "bronze": 1,
            "silver": 2,
            "gold": 3,
        }[self.value]


class VoteType(str, Enum):
    """A single customer vote on a (shop, badge) claim."""

    YES = "yes"
    NO = "no"

    @classmethod
    def parse(cls, value: "VoteType | str") -> "VoteType":
        """Coerce 'yes'/'no' strings to VoteType; anything else is rejected."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        raise InvalidArgumentError(f"Unknown vote type: {value!r}. Expected 'yes' or 'no'.")
