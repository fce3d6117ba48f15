"""
Vote Tally update rule and the recompute cycle that follows every vote.

record_vote() only increments a count. apply_vote() is the call stores use:
it increments, re-evaluates the voted badge and re-aggregates the whole shop,
returning all three so the store persists them in the same write.

Atomicity is NOT provided here. The caller must serialize apply_vote() per
shop (lock or transaction) so two votes never read the same count.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from greenscore.errors import InvalidArgumentError
from greenscore.schemas.enums import BadgeLevel, VoteType
from greenscore.scorers.badge_evaluator import EvaluatedBadge, evaluate
from greenscore.scorers.score_aggregator import aggregate_score
from greenscore.scorers.scoring_config import ScoringConfig, get_scoring_config


@dataclass(frozen=True)
class VoteTally:
    """Running yes/no counts for one (shop, badge) pair."""

    shop_id: str
    badge_id: str
    yes_count: int = 0
    no_count: int = 0

    def __post_init__(self):
        if not self.shop_id or not self.badge_id:
            raise InvalidArgumentError("shop_id and badge_id are required")
        for name in ("yes_count", "no_count"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidArgumentError(f"{name} must be a non-negative integer, got {value!r}")

    @property
    def key(self) -> tuple[str, str]:
        return (self.shop_id, self.badge_id)

    @property
    def total_reports(self) -> int:
        return self.yes_count + self.no_count


@dataclass(frozen=True)
class Recomputation:
    """Everything that must be persisted together after one vote."""

    tally: VoteTally
    evaluated: EvaluatedBadge
    shop_score: int
    previous_level: BadgeLevel = BadgeLevel.NONE
    # Per-shop write counter, set by the store that persisted this result
    sequence: int = 0


def record_vote(tally: VoteTally, vote_type: VoteType | str) -> VoteTally:
    """Return a new tally with exactly one of yes/no incremented by 1."""
    vote = VoteType.parse(vote_type)
    if vote is VoteType.YES:
        return replace(tally, yes_count=tally.yes_count + 1)
    return replace(tally, no_count=tally.no_count + 1)


def evaluate_tally(tally: VoteTally, config: Optional[ScoringConfig] = None) -> EvaluatedBadge:
    return evaluate(tally.yes_count, tally.no_count, config)


def recompute(
    tally: VoteTally,
    shop_tallies: Iterable[VoteTally],
    config: Optional[ScoringConfig] = None,
    previous_level: BadgeLevel = BadgeLevel.NONE,
) -> Recomputation:
    """
    Re-evaluate one badge and re-aggregate its shop.

    Args:
        tally: The (already updated) tally of the voted badge
        shop_tallies: All stored tallies of the same shop; a stale copy of
            `tally` among them is replaced by `tally`
        config: Scoring constants; defaults to the loaded ScoringConfig
        previous_level: Level before the vote, carried through for observers

    Returns:
        Recomputation with the tally, its evaluation and the shop score
    """
    config = config or get_scoring_config()
    by_badge: dict[str, VoteTally] = {}
    for other in shop_tallies:
        if other.shop_id != tally.shop_id:
            raise InvalidArgumentError(f"Tally for shop {other.shop_id} passed while recomputing shop {tally.shop_id}")
        by_badge[other.badge_id] = other
    by_badge[tally.badge_id] = tally

    evaluated = {badge_id: evaluate_tally(t, config) for badge_id, t in by_badge.items()}
    return Recomputation(
        tally=tally,
        evaluated=evaluated[tally.badge_id],
        shop_score=aggregate_score(evaluated.values(), config),
        previous_level=previous_level,
    )


def apply_vote(
    tally: VoteTally,
    vote_type: VoteType | str,
    shop_tallies: Iterable[VoteTally],
    config: Optional[ScoringConfig] = None,
) -> Recomputation:
    """Increment the tally, then recompute the badge and the shop score in one step."""
    config = config or get_scoring_config()
    previous_level = evaluate_tally(tally, config).level
    updated = record_vote(tally, vote_type)
    return recompute(updated, shop_tallies, config, previous_level=previous_level)


def shop_score_from_tallies(shop_tallies: Iterable[VoteTally], config: Optional[ScoringConfig] = None) -> int:
    """Aggregate a shop's score straight from its stored tallies."""
    config = config or get_scoring_config()
    return aggregate_score((evaluate_tally(t, config) for t in shop_tallies), config)
