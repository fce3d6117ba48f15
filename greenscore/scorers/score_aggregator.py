"""
Score Aggregator - combines a shop's evaluated badges into one Green Score.

Formula:
    eligible = badges with is_eligible
    score = round_half_up(sum(percentage * weight[level]) / len(eligible))

Weights (defaults): gold 1.5, silver 1.2, bronze 1.0, none 0.5. An eligible
badge below bronze still counts, at half weight.

The sum is divided by the badge COUNT, not the sum of weights, so a shop whose
eligible badges are all gold can score above 100 (a single gold badge at 100%
scores 150). aggregate_score() returns that raw value untouched; clamping to
0-100 happens only in display_score(), which every presentation path uses.
"""

from decimal import Decimal
from typing import Iterable, Optional

from greenscore.constants import DISPLAY_SCORE_MAX, DISPLAY_SCORE_MIN, GRADE_THRESHOLDS, SCORE_LABELS
from greenscore.scorers.badge_evaluator import EvaluatedBadge, round_half_up
from greenscore.scorers.scoring_config import ScoringConfig, get_scoring_config


def weighted_contribution(badge: EvaluatedBadge, config: Optional[ScoringConfig] = None) -> Decimal:
    """Percentage times level weight for one badge (0 if ineligible)."""
    if not badge.is_eligible:
        return Decimal(0)
    config = config or get_scoring_config()
    return Decimal(badge.percentage) * config.weight_for(badge.level)


def aggregate_score(
    evaluated_badges: Iterable[EvaluatedBadge],
    config: Optional[ScoringConfig] = None,
) -> int:
    """
    Compute a shop's raw Green Score.

    Args:
        evaluated_badges: Every evaluated badge of the shop (ineligible ones are ignored)
        config: Level weights; defaults to the loaded ScoringConfig

    Returns:
        Integer score >= 0. Not capped at 100, see display_score().
    """
    config = config or get_scoring_config()
    eligible = [b for b in evaluated_badges if b.is_eligible]
    if not eligible:
        return 0
    total = sum((weighted_contribution(b, config) for b in eligible), Decimal(0))
    return round_half_up(total / len(eligible))


def display_score(score: int) -> int:
    """Clamp a raw aggregate into the 0-100 range shown to users."""
    return max(DISPLAY_SCORE_MIN, min(DISPLAY_SCORE_MAX, score))


def grade_for_score(score: int) -> str:
    """Letter grade for a shop: A+ (85+), A (70+), B (50+), otherwise C."""
    shown = display_score(score)
    for lower_bound, grade in GRADE_THRESHOLDS:
        if shown >= lower_bound:
            return grade
    return GRADE_THRESHOLDS[-1][1]


def score_label(score: int) -> str:
    """Word shown under the score ring."""
    shown = display_score(score)
    for lower_bound, label in SCORE_LABELS:
        if shown >= lower_bound:
            return label
    return SCORE_LABELS[-1][1]
