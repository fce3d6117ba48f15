"""Tally stores: persistence for vote tallies, their evaluations and shop scores.

A store owns atomicity: apply_vote() serializes the whole
increment -> evaluate -> aggregate -> persist cycle per shop, so a reader never
sees a new tally next to a stale shop score and concurrent votes never lose an
increment. The arithmetic itself always comes from greenscore.scorers.

Two implementations:
- InMemoryTallyStore: per-shop threading locks, for tests and single-process use
- SqlTallyStore: one DoltDB/MySQL transaction per vote, shop row locked FOR UPDATE
"""

import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional

import pymysql

from greenscore.constants import WRITE_INITIAL_BACKOFF_SECONDS, WRITE_MAX_RETRIES
from greenscore.errors import DuplicateVoteError, InvalidArgumentError, StoreError
from greenscore.schemas.enums import VoteType
from greenscore.scorers.badge_evaluator import EvaluatedBadge
from greenscore.scorers.scoring_config import ScoringConfig, get_scoring_config
from greenscore.scorers.vote_tally import (
    Recomputation,
    VoteTally,
    apply_vote,
    evaluate_tally,
    shop_score_from_tallies,
)

from .client import transaction
from .repository import ShopBadge

logger = logging.getLogger(__name__)

# MySQL error codes worth retrying: deadlock, lock wait timeout
RETRYABLE_ERROR_CODES = {1213, 1205}
DUPLICATE_ENTRY = 1062


class TallyStore(ABC):
    """
    Persistence capability consumed by BadgeScoringService.

    Subclasses must implement:
    - get_tally / get_shop_tallies: reads
    - apply_vote: atomic vote + recompute + persist
    - rebuild_shop: atomic recompute of every badge and the score of a shop
    - get_shop_score / list_shop_scores: derived score reads
    """

    @abstractmethod
    def get_tally(self, shop_id: str, badge_id: str) -> VoteTally:
        """Current tally for a pair (zero counts if nobody has voted yet)."""
        ...

    @abstractmethod
    def get_shop_tallies(self, shop_id: str) -> list[VoteTally]:
        """Every stored tally of a shop."""
        ...

    @abstractmethod
    def apply_vote(
        self,
        shop_id: str,
        badge_id: str,
        vote_type: VoteType | str,
        user_id: Optional[str] = None,
        config: Optional[ScoringConfig] = None,
    ) -> Recomputation:
        """
        Record one vote and persist tally, evaluation and shop score together.

        Args:
            shop_id: Shop being voted on
            badge_id: Badge claim being voted on
            vote_type: 'yes' or 'no'
            user_id: If given, the vote is recorded against the one-vote-per-user
                constraint in the same atomic step
            config: Scoring constants; defaults to the loaded ScoringConfig

        Returns:
            The Recomputation, with sequence set to the shop's write counter as
            of this commit. Counters increase per shop in commit order.

        Raises:
            DuplicateVoteError: user_id already voted on this (shop, badge)
            StoreError: Persistence failed after retries
        """
        ...

    @abstractmethod
    def rebuild_shop(self, shop_id: str, config: Optional[ScoringConfig] = None) -> int:
        """Re-evaluate every badge of a shop and store the new score. Returns the score."""
        ...

    @abstractmethod
    def get_shop_score(self, shop_id: str) -> Optional[int]:
        """Last persisted raw score, or None for an unknown shop."""
        ...

    @abstractmethod
    def list_shop_scores(self) -> dict[str, int]:
        """Raw score of every shop the store knows about."""
        ...


class InMemoryTallyStore(TallyStore):
    """Dict-backed store. One lock per shop guards the vote cycle."""

    def __init__(self):
        self._tallies: dict[tuple[str, str], VoteTally] = {}
        self._evaluations: dict[tuple[str, str], EvaluatedBadge] = {}
        self._scores: dict[str, int] = {}
        self._sequences: dict[str, int] = {}
        self._voters: set[tuple[str, str, str]] = set()
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _shop_lock(self, shop_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(shop_id)
            if lock is None:
                lock = self._locks[shop_id] = threading.Lock()
            return lock

    def _next_sequence(self, shop_id: str) -> int:
        # Caller holds the shop lock
        self._sequences[shop_id] = self._sequences.get(shop_id, 0) + 1
        return self._sequences[shop_id]

    def get_tally(self, shop_id: str, badge_id: str) -> VoteTally:
        return self._tallies.get((shop_id, badge_id)) or VoteTally(shop_id=shop_id, badge_id=badge_id)

    def get_shop_tallies(self, shop_id: str) -> list[VoteTally]:
        return [t for (sid, _), t in list(self._tallies.items()) if sid == shop_id]

    def get_evaluation(self, shop_id: str, badge_id: str) -> Optional[EvaluatedBadge]:
        return self._evaluations.get((shop_id, badge_id))

    def apply_vote(self, shop_id, badge_id, vote_type, user_id=None, config=None) -> Recomputation:
        config = config or get_scoring_config()
        with self._shop_lock(shop_id):
            if user_id is not None:
                voter_key = (user_id, shop_id, badge_id)
                if voter_key in self._voters:
                    raise DuplicateVoteError(f"User {user_id} already voted on {badge_id} for shop {shop_id}")

            current = self.get_tally(shop_id, badge_id)
            result = apply_vote(current, vote_type, self.get_shop_tallies(shop_id), config)

            self._tallies[current.key] = result.tally
            self._evaluations[current.key] = result.evaluated
            self._scores[shop_id] = result.shop_score
            result = replace(result, sequence=self._next_sequence(shop_id))
            if user_id is not None:
                self._voters.add(voter_key)
        return result

    def rebuild_shop(self, shop_id, config=None) -> int:
        config = config or get_scoring_config()
        with self._shop_lock(shop_id):
            tallies = self.get_shop_tallies(shop_id)
            for tally in tallies:
                self._evaluations[tally.key] = evaluate_tally(tally, config)
            score = shop_score_from_tallies(tallies, config)
            self._scores[shop_id] = score
            self._next_sequence(shop_id)
        return score

    def get_shop_score(self, shop_id: str) -> Optional[int]:
        return self._scores.get(shop_id)

    def list_shop_scores(self) -> dict[str, int]:
        return dict(self._scores)


class SqlTallyStore(TallyStore):
    """DoltDB/MySQL store. Each vote is one transaction holding the shop row lock."""

    def __init__(self, max_retries: int = WRITE_MAX_RETRIES, initial_backoff: float = WRITE_INITIAL_BACKOFF_SECONDS):
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff

    def _run_with_retry(self, operation, description: str):
        """Run a transactional operation, retrying deadlocks with exponential backoff."""
        backoff = self.initial_backoff
        for attempt in range(1, self.max_retries + 1):
            try:
                return operation()
            except pymysql.err.OperationalError as e:
                code = e.args[0] if e.args else None
                if code not in RETRYABLE_ERROR_CODES:
                    raise StoreError(f"{description} failed: {e}") from e
                if attempt == self.max_retries:
                    raise StoreError(f"{description} failed after {attempt} attempts: {e}") from e
                logger.warning(f"{description}: lock conflict (code {code}), retry {attempt}/{self.max_retries - 1} in {backoff:.2f}s")
                time.sleep(backoff)
                backoff *= 2
            except pymysql.Error as e:
                raise StoreError(f"{description} failed: {e}") from e

    def _lock_shop(self, cursor, shop_id: str) -> int:
        """Lock the shop row for this transaction. Returns its current score_version."""
        cursor.execute("SELECT id, score_version FROM shops WHERE id = %s FOR UPDATE", (shop_id,))
        row = cursor.fetchone()
        if row is None:
            raise InvalidArgumentError(f"Unknown shop: {shop_id!r}")
        return int(row.get("score_version") or 0)

    def _read_tallies(self, cursor, shop_id: str) -> list[VoteTally]:
        cursor.execute("SELECT shop_id, badge_id, yes_count, no_count FROM shop_badges WHERE shop_id = %s", (shop_id,))
        return [ShopBadge.from_row(row).to_tally() for row in cursor.fetchall()]

    def _write_badge(self, cursor, tally: VoteTally, evaluated: EvaluatedBadge) -> None:
        cursor.execute(
            """
            INSERT INTO shop_badges (shop_id, badge_id, yes_count, no_count, percentage, level, is_eligible)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON DUPLICATE KEY UPDATE
                yes_count = VALUES(yes_count),
                no_count = VALUES(no_count),
                percentage = VALUES(percentage),
                level = VALUES(level),
                is_eligible = VALUES(is_eligible)
            """,
            (
                tally.shop_id,
                tally.badge_id,
                tally.yes_count,
                tally.no_count,
                evaluated.percentage,
                evaluated.level.value,
                evaluated.is_eligible,
            ),
        )

    def _write_score(self, cursor, shop_id: str, score: int, sequence: int) -> None:
        cursor.execute(
            "UPDATE shops SET green_score = %s, score_version = %s WHERE id = %s",
            (score, sequence, shop_id),
        )

    def get_tally(self, shop_id: str, badge_id: str) -> VoteTally:
        def _read() -> VoteTally:
            with transaction() as cursor:
                cursor.execute(
                    "SELECT shop_id, badge_id, yes_count, no_count FROM shop_badges WHERE shop_id = %s AND badge_id = %s",
                    (shop_id, badge_id),
                )
                row = cursor.fetchone()
            return ShopBadge.from_row(row).to_tally() if row else VoteTally(shop_id=shop_id, badge_id=badge_id)

        return self._run_with_retry(_read, f"Tally read for {shop_id}/{badge_id}")

    def get_shop_tallies(self, shop_id: str) -> list[VoteTally]:
        def _read() -> list[VoteTally]:
            with transaction() as cursor:
                return self._read_tallies(cursor, shop_id)

        return self._run_with_retry(_read, f"Tally read for {shop_id}")

    def apply_vote(self, shop_id, badge_id, vote_type, user_id=None, config=None) -> Recomputation:
        config = config or get_scoring_config()
        vote = VoteType.parse(vote_type)

        def _apply() -> Recomputation:
            with transaction() as cursor:
                sequence = self._lock_shop(cursor, shop_id) + 1
                if user_id is not None:
                    self._insert_vote(cursor, user_id, shop_id, badge_id, vote)
                tallies = self._read_tallies(cursor, shop_id)
                current = next(
                    (t for t in tallies if t.badge_id == badge_id),
                    VoteTally(shop_id=shop_id, badge_id=badge_id),
                )
                result = apply_vote(current, vote, tallies, config)
                self._write_badge(cursor, result.tally, result.evaluated)
                self._write_score(cursor, shop_id, result.shop_score, sequence)
            return replace(result, sequence=sequence)

        return self._run_with_retry(_apply, f"Vote on {shop_id}/{badge_id}")

    def _insert_vote(self, cursor, user_id: str, shop_id: str, badge_id: str, vote: VoteType) -> None:
        try:
            cursor.execute(
                "INSERT INTO votes (id, user_id, shop_id, badge_id, vote_type) VALUES (%s, %s, %s, %s, %s)",
                (str(uuid.uuid4()), user_id, shop_id, badge_id, vote.value),
            )
        except pymysql.err.IntegrityError as e:
            if e.args and e.args[0] == DUPLICATE_ENTRY:
                raise DuplicateVoteError(f"User {user_id} already voted on {badge_id} for shop {shop_id}") from e
            raise

    def rebuild_shop(self, shop_id, config=None) -> int:
        config = config or get_scoring_config()

        def _rebuild() -> int:
            with transaction() as cursor:
                sequence = self._lock_shop(cursor, shop_id) + 1
                tallies = self._read_tallies(cursor, shop_id)
                for tally in tallies:
                    self._write_badge(cursor, tally, evaluate_tally(tally, config))
                score = shop_score_from_tallies(tallies, config)
                self._write_score(cursor, shop_id, score, sequence)
            return score

        return self._run_with_retry(_rebuild, f"Rebuild of {shop_id}")

    def get_shop_score(self, shop_id: str) -> Optional[int]:
        def _read() -> Optional[int]:
            with transaction() as cursor:
                cursor.execute("SELECT green_score FROM shops WHERE id = %s", (shop_id,))
                row = cursor.fetchone()
            return int(row["green_score"]) if row else None

        return self._run_with_retry(_read, f"Score read for {shop_id}")

    def list_shop_scores(self) -> dict[str, int]:
        def _read() -> dict[str, int]:
            with transaction() as cursor:
                cursor.execute("SELECT id, green_score FROM shops")
                rows = cursor.fetchall()
            return {row["id"]: int(row["green_score"]) for row in rows}

        return self._run_with_retry(_read, "Score listing")
