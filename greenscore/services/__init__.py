"""Services built on the scoring engine: vote recording and the leaderboard."""

from greenscore.services.badge_service import BadgeProgress, BadgeScoringService, ShopBadgeView
from greenscore.services.leaderboard import (
    LeaderboardEntry,
    LeaderboardStats,
    build_leaderboard,
    leaderboard_stats,
)

__all__ = [
    "BadgeProgress",
    "BadgeScoringService",
    "ShopBadgeView",
    "LeaderboardEntry",
    "LeaderboardStats",
    "build_leaderboard",
    "leaderboard_stats",
]
