"""Event emitted after a vote has been applied and the derived values persisted."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from greenscore.schemas.enums import BadgeLevel, VoteType


class ScoreRecomputedEvent(BaseModel):
    """Badge and shop score recomputed for one vote.

    Carries everything an observer needs to refresh a shop view without
    re-reading the store. Transport (push channel, websocket) is up to the
    subscriber.
    """

    shop_id: str
    badge_id: str
    vote_type: VoteType
    yes_count: int = Field(ge=0)
    no_count: int = Field(ge=0)
    percentage: int = Field(ge=0, le=100)
    total_reports: int = Field(ge=0)
    is_eligible: bool
    level: BadgeLevel
    previous_level: BadgeLevel
    shop_score: int = Field(ge=0, description="Raw aggregate, may exceed 100")
    display_score: int = Field(ge=0, le=100)
    sequence: int = Field(default=0, ge=0, description="Per-shop write counter; a lower value than one already seen is stale")
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def level_changed(self) -> bool:
        return self.level != self.previous_level
