"""Leaderboard: ranks verified shops by Green Score.

Scores are shown through display_score(), so a raw aggregate above 100 is
listed as 100 and graded A+. Sorting uses the raw score so two shops clamped
to 100 keep their true order.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from greenscore.db.repository import Shop
from greenscore.errors import InvalidArgumentError
from greenscore.scorers.badge_evaluator import round_half_up
from greenscore.scorers.score_aggregator import display_score, grade_for_score, score_label

SORT_KEYS = ("score", "name")
TOP_GRADE = "A+"


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    shop_id: str
    name: str
    score: int  # Raw aggregate
    display_score: int  # 0-100
    grade: str
    label: str


@dataclass(frozen=True)
class LeaderboardStats:
    total_shops: int
    top_grade_shops: int  # Shops graded A+
    average_score: int  # Mean display score, ROUND-HALF-UP


def build_leaderboard(shops: Iterable[Shop], search: str = "", sort_by: str = "score") -> list[LeaderboardEntry]:
    """
    Rank verified shops.

    Args:
        shops: Candidate shops; unverified ones are dropped
        search: Case-insensitive substring the shop name must contain
        sort_by: 'score' (highest first, ties by name) or 'name' (A-Z)

    Returns:
        Entries with 1-based ranks in display order
    """
    if sort_by not in SORT_KEYS:
        raise InvalidArgumentError(f"sort_by must be one of {SORT_KEYS}, got {sort_by!r}")

    needle = (search or "").strip().lower()
    visible = [s for s in shops if s.is_verified and needle in s.name.lower()]

    if sort_by == "score":
        visible.sort(key=lambda s: (-s.green_score, s.name.lower()))
    else:
        visible.sort(key=lambda s: s.name.lower())

    return [
        LeaderboardEntry(
            rank=index,
            shop_id=shop.id,
            name=shop.name,
            score=shop.green_score,
            display_score=display_score(shop.green_score),
            grade=grade_for_score(shop.green_score),
            label=score_label(shop.green_score),
        )
        for index, shop in enumerate(visible, start=1)
    ]


def leaderboard_stats(entries: list[LeaderboardEntry]) -> LeaderboardStats:
    if not entries:
        return LeaderboardStats(total_shops=0, top_grade_shops=0, average_score=0)
    total = sum(e.display_score for e in entries)
    return LeaderboardStats(
        total_shops=len(entries),
        top_grade_shops=sum(1 for e in entries if e.grade == TOP_GRADE),
        average_score=round_half_up(Decimal(total) / len(entries)),
    )
