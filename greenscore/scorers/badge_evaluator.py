"""
Badge Evaluator - derives percentage, eligibility and level from a yes/no tally.

This is the only place the badge formula lives. Persistence, display and the
leaderboard all call evaluate(); none of them recompute percentages inline.

Rubric (defaults, see ScoringConfig):
- percentage = yes / (yes + no) * 100, ROUND-HALF-UP, 0 when there are no votes
- eligible once yes + no >= 10
- gold >= 85, silver >= 70, bronze >= 50, otherwise none
- ineligible badges are always level none, whatever their percentage

All functions are pure: no I/O, no hidden state.
"""

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from greenscore.errors import InvalidArgumentError
from greenscore.schemas.enums import BadgeLevel
from greenscore.scorers.scoring_config import TIERED_LEVELS, ScoringConfig, get_scoring_config


@dataclass(frozen=True)
class EvaluatedBadge:
    """Derived display/eligibility state of one (shop, badge) tally."""

    percentage: int  # 0-100
    total_reports: int
    is_eligible: bool
    level: BadgeLevel

    def to_dict(self) -> dict:
        data = asdict(self)
        data["level"] = self.level.value
        return data


@dataclass(frozen=True)
class LevelThreshold:
    """Next tier up the ladder and the percentage needed to reach it."""

    level: BadgeLevel
    threshold: int


def round_half_up(value) -> int:
    """Round to the nearest integer, halves away from zero (12.5 -> 13).

    Python's round() uses banker's rounding (12.5 -> 12), which is why it is
    never used for scores.
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _check_count(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise InvalidArgumentError(f"{name} must be non-negative, got {value}")


def calculate_percentage(yes_count: int, no_count: int) -> int:
    """Share of yes votes as a whole percentage (0 when nobody has voted)."""
    _check_count("yes_count", yes_count)
    _check_count("no_count", no_count)
    total = yes_count + no_count
    if total == 0:
        return 0
    # Integer ROUND-HALF-UP of yes*100/total; exact for any count size
    return (200 * yes_count + total) // (2 * total)


def calculate_badge_level(
    percentage: int,
    is_eligible: bool,
    config: Optional[ScoringConfig] = None,
) -> BadgeLevel:
    """Map a percentage to a tier. Thresholds are inclusive, checked gold first."""
    if not is_eligible:
        return BadgeLevel.NONE
    config = config or get_scoring_config()
    for level, threshold in config.ladder():
        if percentage >= threshold:
            return level
    return BadgeLevel.NONE


def evaluate(yes_count: int, no_count: int, config: Optional[ScoringConfig] = None) -> EvaluatedBadge:
    """
    Evaluate one badge tally.

    Args:
        yes_count: Votes confirming the practice (>= 0)
        no_count: Votes disputing the practice (>= 0)
        config: Thresholds/min reports; defaults to the loaded ScoringConfig

    Returns:
        EvaluatedBadge with percentage, total_reports, is_eligible and level

    Raises:
        InvalidArgumentError: If either count is negative or not an integer
    """
    config = config or get_scoring_config()
    percentage = calculate_percentage(yes_count, no_count)
    total_reports = yes_count + no_count
    is_eligible = total_reports >= config.min_reports
    return EvaluatedBadge(
        percentage=percentage,
        total_reports=total_reports,
        is_eligible=is_eligible,
        level=calculate_badge_level(percentage, is_eligible, config),
    )


def next_level_threshold(percentage: int, config: Optional[ScoringConfig] = None) -> Optional[LevelThreshold]:
    """Next tier above the current percentage, or None once gold is reached.

    Only used for progress bars; it does not decide levels. Eligibility is not
    considered here.
    """
    if percentage < 0:
        raise InvalidArgumentError(f"percentage must be non-negative, got {percentage}")
    config = config or get_scoring_config()
    for level in TIERED_LEVELS:
        threshold = config.threshold_for(level)
        if percentage < threshold:
            return LevelThreshold(level=level, threshold=threshold)
    return None


def evaluate_user_badge(percentage: int, is_eligible: bool, config: Optional[ScoringConfig] = None) -> BadgeLevel:
    """Tier for a customer achievement badge.

    Customer badges use the same ladder as shop badges; eligibility comes from
    the badge's own requirement rather than a vote count.
    """
    if percentage < 0:
        raise InvalidArgumentError(f"percentage must be non-negative, got {percentage}")
    return calculate_badge_level(percentage, is_eligible, config)
