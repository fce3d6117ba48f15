"""Deterministic badge scoring: evaluation, aggregation and the vote update rule."""

from greenscore.scorers.badge_evaluator import (
    EvaluatedBadge,
    LevelThreshold,
    calculate_badge_level,
    calculate_percentage,
    evaluate,
    evaluate_user_badge,
    next_level_threshold,
    round_half_up,
)
from greenscore.scorers.score_aggregator import (
    aggregate_score,
    display_score,
    grade_for_score,
    score_label,
    weighted_contribution,
)
from greenscore.scorers.scoring_config import ScoringConfig, get_scoring_config
from greenscore.scorers.vote_tally import (
    Recomputation,
    VoteTally,
    apply_vote,
    evaluate_tally,
    record_vote,
    recompute,
    shop_score_from_tallies,
)

__all__ = [
    # Badge evaluation
    "EvaluatedBadge",
    "LevelThreshold",
    "calculate_badge_level",
    "calculate_percentage",
    "evaluate",
    "evaluate_user_badge",
    "next_level_threshold",
    "round_half_up",
    # Shop aggregation
    "aggregate_score",
    "display_score",
    "grade_for_score",
    "score_label",
    "weighted_contribution",
    # Config
    "ScoringConfig",
    "get_scoring_config",
    # Vote tally
    "Recomputation",
    "VoteTally",
    "apply_vote",
    "evaluate_tally",
    "record_vote",
    "recompute",
    "shop_score_from_tallies",
]
