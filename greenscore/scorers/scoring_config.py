"""Scoring Config: tier thresholds, tier weights and eligibility minimum.

Defaults come from greenscore.constants. A deployment can override them with
config/scoring.yaml; tests build a ScoringConfig directly.

Usage:
    from greenscore.scorers.scoring_config import get_scoring_config

    config = get_scoring_config()
    config.threshold_for(BadgeLevel.GOLD)  # 85
    config.weight_for(BadgeLevel.SILVER)  # 1.2

scoring.yaml shape (every key optional):
    min_reports: 10
    thresholds: {bronze: 50, silver: 70, gold: 85}
    weights: {gold: 1.5, silver: 1.2, bronze: 1.0, none: 0.5}
"""

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

import yaml

from greenscore.config import get_scoring_config_path
from greenscore.constants import MIN_REPORTS, TIER_THRESHOLDS, TIER_WEIGHTS
from greenscore.errors import InvalidArgumentError
from greenscore.schemas.enums import BadgeLevel

logger = logging.getLogger(__name__)

# Levels that carry a percentage threshold, lowest first
TIERED_LEVELS = [BadgeLevel.BRONZE, BadgeLevel.SILVER, BadgeLevel.GOLD]


def _level_key(key) -> BadgeLevel:
    try:
        return BadgeLevel(key)
    except ValueError:
        raise InvalidArgumentError(f"Unknown badge level in scoring config: {key!r}") from None


@dataclass(frozen=True)
class ScoringConfig:
    """Named constants the evaluator and aggregator depend on."""

    min_reports: int = MIN_REPORTS
    thresholds: dict[BadgeLevel, int] = field(
        default_factory=lambda: {BadgeLevel(k): v for k, v in TIER_THRESHOLDS.items()}
    )
    weights: dict[BadgeLevel, float] = field(
        default_factory=lambda: {BadgeLevel(k): v for k, v in TIER_WEIGHTS.items()}
    )

    def __post_init__(self):
        # Normalize string keys ("gold") to BadgeLevel so YAML and code agree
        object.__setattr__(self, "thresholds", {_level_key(k): v for k, v in self.thresholds.items()})
        object.__setattr__(self, "weights", {_level_key(k): v for k, v in self.weights.items()})
        _validate(self)

    def threshold_for(self, level: BadgeLevel) -> int:
        return self.thresholds[level]

    def weight_for(self, level: BadgeLevel) -> Decimal:
        """Weight as a Decimal so aggregate arithmetic is exact."""
        return Decimal(str(self.weights[level]))

    def ladder(self) -> list[tuple[BadgeLevel, int]]:
        """(level, threshold) pairs from highest tier to lowest."""
        return [(level, self.thresholds[level]) for level in reversed(TIERED_LEVELS)]

    @classmethod
    def from_dict(cls, raw: dict) -> "ScoringConfig":
        """Build a config from a YAML mapping, falling back to defaults per key."""
        if not isinstance(raw, dict):
            raise InvalidArgumentError(f"Scoring config must be a mapping, got {type(raw).__name__}")
        overrides = {}
        for section in ("thresholds", "weights"):
            values = raw.get(section) or {}
            if not isinstance(values, dict):
                raise InvalidArgumentError(f"Scoring config '{section}' must be a mapping, got {type(values).__name__}")
            overrides[section] = {_level_key(k): v for k, v in values.items()}

        defaults = cls()
        thresholds = {**defaults.thresholds, **overrides["thresholds"]}
        weights = {**defaults.weights, **overrides["weights"]}
        return cls(
            min_reports=raw.get("min_reports", defaults.min_reports),
            thresholds=thresholds,
            weights=weights,
        )


def _is_number(value) -> bool:
    """int or float, finite, and not a bool (YAML 'true' must not pass as 1)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _validate(config: ScoringConfig) -> None:
    """Reject configs that would make the tier ladder ambiguous."""
    if isinstance(config.min_reports, bool) or not isinstance(config.min_reports, int) or config.min_reports < 1:
        raise InvalidArgumentError(f"min_reports must be a positive integer, got {config.min_reports!r}")

    missing = set(TIERED_LEVELS) - set(config.thresholds)
    if missing:
        raise InvalidArgumentError(f"Scoring config missing thresholds for: {sorted(m.value for m in missing)}")
    extra = set(config.thresholds) - set(TIERED_LEVELS)
    if extra:
        raise InvalidArgumentError(f"Scoring config has thresholds for untiered levels: {sorted(e.value for e in extra)}")

    previous = 0
    for level in TIERED_LEVELS:
        value = config.thresholds[level]
        if not _is_number(value):
            raise InvalidArgumentError(f"{level.value} threshold must be a number, got {value!r}")
        if not 0 < value <= 100:
            raise InvalidArgumentError(f"{level.value} threshold must be in 1..100, got {value}")
        if value <= previous:
            raise InvalidArgumentError("Tier thresholds must strictly increase bronze < silver < gold")
        previous = value

    missing = set(BadgeLevel) - set(config.weights)
    if missing:
        raise InvalidArgumentError(f"Scoring config missing weights for: {sorted(m.value for m in missing)}")
    for level, weight in config.weights.items():
        if not _is_number(weight):
            raise InvalidArgumentError(f"{level.value} weight must be a finite number, got {weight!r}")
        if weight < 0:
            raise InvalidArgumentError(f"{level.value} weight must be non-negative, got {weight}")


# Module-level cache
_config_cache: Optional[ScoringConfig] = None


def get_scoring_config() -> ScoringConfig:
    """Load and cache the scoring config (YAML overrides on top of defaults)."""
    global _config_cache
    if _config_cache is not None:
        return _config_cache

    config_path = get_scoring_config_path()
    if not config_path.exists():
        logger.debug(f"No scoring overrides at {config_path}, using defaults")
        _config_cache = ScoringConfig()
        return _config_cache

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    _config_cache = ScoringConfig.from_dict(raw)
    thresholds = {k.value: v for k, v in _config_cache.thresholds.items()}
    logger.info(f"Loaded scoring config from {config_path}: min_reports={_config_cache.min_reports}, thresholds={thresholds}")
    return _config_cache


def clear_cache():
    """Clear the config cache (useful for testing)."""
    global _config_cache
    _config_cache = None
