"""
Global constants for the badge scoring engine.

Centralizes the scoring thresholds and tuning values so every caller
(persistence, display, leaderboard) reads the same numbers.
"""

# Badge eligibility
MIN_REPORTS = 10  # Minimum yes+no votes before a badge percentage counts

# Tier thresholds (inclusive lower bounds on percentage)
TIER_THRESHOLDS = {
    "bronze": 50,
    "silver": 70,
    "gold": 85,
}

# Per-level multipliers for the aggregate Green Score.
# "none" applies to eligible badges below bronze; ineligible badges never count.
TIER_WEIGHTS = {
    "gold": 1.5,
    "silver": 1.2,
    "bronze": 1.0,
    "none": 0.5,
}

# Display
DISPLAY_SCORE_MIN = 0
DISPLAY_SCORE_MAX = 100  # Raw aggregate can reach 150; clamp only when displaying

# Leaderboard grades (display score lower bounds, checked in descending order)
GRADE_THRESHOLDS = [
    (85, "A+"),
    (70, "A"),
    (50, "B"),
    (0, "C"),
]

SCORE_LABELS = [
    (85, "Excellent"),
    (70, "Great"),
    (50, "Good"),
    (25, "Fair"),
    (0, "Starting"),
]

# Catalog shape
BADGES_PER_CATEGORY = 5
TOTAL_BADGES = 20

# Database write retries (deadlocks / lock wait timeouts)
WRITE_MAX_RETRIES = 5
WRITE_INITIAL_BACKOFF_SECONDS = 0.05

# Batch recompute
DEFAULT_WORKERS = 4
