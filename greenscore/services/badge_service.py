"""Badge scoring service, the entry point for votes and shop badge reads.

Validates the badge against the catalog, hands the vote to a TallyStore (which
applies it atomically), then notifies subscribers with a ScoreRecomputedEvent.
Subscribers are plain callables; pushing the event to browsers is their job.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from greenscore.catalog import Catalog, get_badge_catalog
from greenscore.db.stores import TallyStore
from greenscore.errors import InvalidArgumentError
from greenscore.schemas.badge import BadgeDefinition
from greenscore.schemas.enums import BadgeCategory, VoteType
from greenscore.schemas.events import ScoreRecomputedEvent
from greenscore.scorers.badge_evaluator import EvaluatedBadge, LevelThreshold, next_level_threshold
from greenscore.scorers.score_aggregator import display_score
from greenscore.scorers.scoring_config import ScoringConfig, get_scoring_config
from greenscore.scorers.vote_tally import Recomputation, VoteTally, evaluate_tally

logger = logging.getLogger(__name__)

Listener = Callable[[ScoreRecomputedEvent], None]


@dataclass(frozen=True)
class ShopBadgeView:
    """A catalog badge joined with a shop's tally and its evaluation."""

    definition: BadgeDefinition
    tally: VoteTally
    evaluated: EvaluatedBadge

    @property
    def badge_id(self) -> str:
        return self.definition.id


@dataclass(frozen=True)
class BadgeProgress:
    """What a badge needs next: more votes, a higher percentage, or nothing."""

    badge_id: str
    evaluated: EvaluatedBadge
    votes_to_eligible: int
    next_level: Optional[LevelThreshold]


class BadgeScoringService:
    """Records votes and serves evaluated badges for shops."""

    def __init__(
        self,
        store: TallyStore,
        catalog: Optional[Catalog[BadgeDefinition]] = None,
        config: Optional[ScoringConfig] = None,
    ):
        self.store = store
        self.catalog = catalog or get_badge_catalog()
        self._config = config
        self._listeners: list[Listener] = []
        self._listeners_lock = threading.Lock()

    @property
    def config(self) -> ScoringConfig:
        return self._config or get_scoring_config()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for recompute events. Returns an unsubscribe function."""
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: ScoreRecomputedEvent) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                # Vote is already committed; keep notifying the remaining listeners
                logger.error(
                    f"Listener {getattr(listener, '__name__', listener)!r} failed for {event.shop_id}/{event.badge_id}",
                    exc_info=True,
                )

    def record_vote(
        self,
        shop_id: str,
        badge_id: str,
        vote_type: VoteType | str,
        user_id: Optional[str] = None,
    ) -> Recomputation:
        """
        Apply one customer vote and broadcast the recomputed badge and score.

        Args:
            shop_id: Shop being voted on
            badge_id: Catalog badge id
            vote_type: 'yes' or 'no'
            user_id: Voter, checked against the one-vote-per-badge constraint when given

        Returns:
            Recomputation (new tally, evaluated badge, raw shop score)

        Raises:
            InvalidArgumentError: Empty shop id, unknown badge or vote type
            DuplicateVoteError: The user already voted on this badge for this shop
            StoreError: Persistence failed after retries
        """
        if not shop_id:
            raise InvalidArgumentError("shop_id is required")
        self.catalog.get(badge_id)
        vote = VoteType.parse(vote_type)

        result = self.store.apply_vote(shop_id, badge_id, vote, user_id=user_id, config=self.config)
        logger.info(
            f"Vote recorded [shop={shop_id} badge={badge_id} vote={vote.value} "
            f"yes={result.tally.yes_count} no={result.tally.no_count} level={result.evaluated.level.value} "
            f"score={result.shop_score}]"
        )
        if result.evaluated.level != result.previous_level:
            logger.info(
                f"Badge level changed [shop={shop_id} badge={badge_id} "
                f"{result.previous_level.value} -> {result.evaluated.level.value}]"
            )

        self._emit(
            ScoreRecomputedEvent(
                shop_id=shop_id,
                badge_id=badge_id,
                vote_type=vote,
                yes_count=result.tally.yes_count,
                no_count=result.tally.no_count,
                percentage=result.evaluated.percentage,
                total_reports=result.evaluated.total_reports,
                is_eligible=result.evaluated.is_eligible,
                level=result.evaluated.level,
                previous_level=result.previous_level,
                shop_score=result.shop_score,
                display_score=display_score(result.shop_score),
                sequence=result.sequence,
            )
        )
        return result

    def get_shop_badges(self, shop_id: str) -> list[ShopBadgeView]:
        """Every catalog badge for a shop, evaluated fresh (unvoted badges have zero counts)."""
        config = self.config
        tallies = {t.badge_id: t for t in self.store.get_shop_tallies(shop_id)}
        views = []
        for definition in self.catalog:
            tally = tallies.get(definition.id) or VoteTally(shop_id=shop_id, badge_id=definition.id)
            views.append(ShopBadgeView(definition=definition, tally=tally, evaluated=evaluate_tally(tally, config)))
        return views

    def get_badges_by_category(self, shop_id: str) -> dict[BadgeCategory, list[ShopBadgeView]]:
        grouped: dict[BadgeCategory, list[ShopBadgeView]] = {category: [] for category in BadgeCategory}
        for view in self.get_shop_badges(shop_id):
            grouped[view.definition.category].append(view)
        return grouped

    def get_shop_score(self, shop_id: str) -> int:
        """Raw persisted score (0 for a shop nobody has voted on)."""
        score = self.store.get_shop_score(shop_id)
        return score if score is not None else 0

    def recompute_shop(self, shop_id: str) -> int:
        """Rebuild a shop's evaluations and score from its stored tallies."""
        score = self.store.rebuild_shop(shop_id, config=self.config)
        logger.info(f"Shop recomputed [shop={shop_id} score={score}]")
        return score

    def badge_progress(self, shop_id: str, badge_id: str) -> BadgeProgress:
        self.catalog.get(badge_id)
        config = self.config
        evaluated = evaluate_tally(self.store.get_tally(shop_id, badge_id), config)
        return BadgeProgress(
            badge_id=badge_id,
            evaluated=evaluated,
            votes_to_eligible=max(0, config.min_reports - evaluated.total_reports),
            next_level=next_level_threshold(evaluated.percentage, config),
        )
