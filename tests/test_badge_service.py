"""Tests for BadgeScoringService: votes, events and shop badge reads."""

import logging
import threading

import pytest
from greenscore.errors import DuplicateVoteError, InvalidArgumentError
from greenscore.schemas.enums import BadgeCategory, BadgeLevel, VoteType
from greenscore.scorers.badge_evaluator import LevelThreshold
from greenscore.scorers.scoring_config import ScoringConfig
from greenscore.services.badge_service import BadgeScoringService

SHOP = "shop-1"


def _vote_many(service, badge_id, yes=0, no=0, shop_id=SHOP):
    for _ in range(yes):
        service.record_vote(shop_id, badge_id, "yes")
    for _ in range(no):
        service.record_vote(shop_id, badge_id, "no")


class TestRecordVote:
    def test_returns_recomputation(self, service):
        result = service.record_vote(SHOP, "plastic-free", "yes")
        assert result.tally.yes_count == 1
        assert result.evaluated.is_eligible is False
        assert result.shop_score == 0

    def test_event_fields(self, service):
        events = []
        service.subscribe(events.append)
        _vote_many(service, "plastic-free", yes=9)
        service.record_vote(SHOP, "plastic-free", VoteType.YES)

        event = events[-1]
        assert len(events) == 10
        assert event.shop_id == SHOP
        assert event.badge_id == "plastic-free"
        assert event.vote_type == VoteType.YES
        assert (event.yes_count, event.no_count, event.total_reports) == (10, 0, 10)
        assert event.percentage == 100
        assert event.is_eligible is True
        assert event.level == BadgeLevel.GOLD
        assert event.previous_level == BadgeLevel.NONE
        assert event.level_changed is True
        assert event.shop_score == 150
        assert event.display_score == 100

    def test_event_without_level_change(self, service):
        events = []
        service.subscribe(events.append)
        service.record_vote(SHOP, "plastic-free", "no")
        assert events[0].level_changed is False

    def test_unknown_badge(self, service, memory_store):
        with pytest.raises(InvalidArgumentError):
            service.record_vote(SHOP, "not-a-badge", "yes")
        assert memory_store.get_shop_tallies(SHOP) == []

    def test_empty_shop_id(self, service):
        with pytest.raises(InvalidArgumentError):
            service.record_vote("", "plastic-free", "yes")

    def test_invalid_vote_type(self, service):
        events = []
        service.subscribe(events.append)
        with pytest.raises(InvalidArgumentError):
            service.record_vote(SHOP, "plastic-free", "perhaps")
        assert events == []

    def test_duplicate_vote_no_event(self, service):
        events = []
        service.subscribe(events.append)
        service.record_vote(SHOP, "plastic-free", "yes", user_id="u1")
        with pytest.raises(DuplicateVoteError):
            service.record_vote(SHOP, "plastic-free", "yes", user_id="u1")
        assert len(events) == 1

    def test_score_tracks_all_badges(self, service):
        _vote_many(service, "plastic-free", yes=8, no=2)  # 80% silver → 96
        _vote_many(service, "energy-saver", yes=6, no=4)  # 60% bronze → 60
        assert service.get_shop_score(SHOP) == 78


class TestListeners:
    def test_unsubscribe(self, service):
        events = []
        unsubscribe = service.subscribe(events.append)
        service.record_vote(SHOP, "plastic-free", "yes")
        unsubscribe()
        unsubscribe()  # Second call is a no-op
        service.record_vote(SHOP, "plastic-free", "yes")
        assert len(events) == 1

    def test_failing_listener_isolated(self, service, caplog):
        received = []

        def broken(event):
            raise RuntimeError("push channel down")

        service.subscribe(broken)
        service.subscribe(received.append)

        with caplog.at_level(logging.ERROR, logger="greenscore.services.badge_service"):
            result = service.record_vote(SHOP, "plastic-free", "yes")

        assert result.tally.yes_count == 1
        assert len(received) == 1
        assert "broken" in caplog.text

    def test_events_carry_increasing_sequence(self, service):
        events = []
        service.subscribe(events.append)
        _vote_many(service, "plastic-free", yes=3)
        service.record_vote("shop-2", "plastic-free", "yes")
        assert [e.sequence for e in events] == [1, 2, 3, 1]

    def test_latest_sequence_wins_under_concurrency(self, service):
        """Events may arrive out of commit order; keeping the highest sequence yields the final state."""
        events = []
        events_lock = threading.Lock()

        def collect(event):
            with events_lock:
                events.append(event)

        service.subscribe(collect)
        n = 30
        barrier = threading.Barrier(n)

        def vote():
            barrier.wait()
            service.record_vote(SHOP, "plastic-free", "yes")

        threads = [threading.Thread(target=vote) for _ in range(n)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(e.sequence for e in events) == list(range(1, n + 1))
        latest = max(events, key=lambda e: e.sequence)
        assert latest.yes_count == n
        assert latest.shop_score == service.get_shop_score(SHOP)


class TestShopBadges:
    def test_all_badges_listed(self, service):
        views = service.get_shop_badges(SHOP)
        assert len(views) == 20
        assert all(v.tally.total_reports == 0 for v in views)
        assert all(v.evaluated.level == BadgeLevel.NONE for v in views)

    def test_voted_badge_evaluated(self, service):
        _vote_many(service, "plastic-free", yes=9, no=1)
        view = next(v for v in service.get_shop_badges(SHOP) if v.badge_id == "plastic-free")
        assert view.evaluated.percentage == 90
        assert view.evaluated.level == BadgeLevel.GOLD
        assert view.definition.name == "Plastic-Free Champ"

    def test_by_category(self, service):
        grouped = service.get_badges_by_category(SHOP)
        assert list(grouped) == list(BadgeCategory)
        assert all(len(views) == 5 for views in grouped.values())
        assert all(v.definition.category == c for c, views in grouped.items() for v in views)

    def test_score_default_zero(self, service):
        assert service.get_shop_score("unknown-shop") == 0


class TestBadgeProgress:
    def test_fresh_badge(self, service):
        progress = service.badge_progress(SHOP, "plastic-free")
        assert progress.votes_to_eligible == 10
        assert progress.next_level == LevelThreshold(level=BadgeLevel.BRONZE, threshold=50)

    def test_silver_badge(self, service):
        _vote_many(service, "plastic-free", yes=8, no=4)  # 67% bronze
        progress = service.badge_progress(SHOP, "plastic-free")
        assert progress.votes_to_eligible == 0
        assert progress.evaluated.level == BadgeLevel.BRONZE
        assert progress.next_level == LevelThreshold(level=BadgeLevel.SILVER, threshold=70)

    def test_gold_has_no_next(self, service):
        _vote_many(service, "plastic-free", yes=10)
        assert service.badge_progress(SHOP, "plastic-free").next_level is None

    def test_unknown_badge(self, service):
        with pytest.raises(InvalidArgumentError):
            service.badge_progress(SHOP, "nope")


class TestRecomputeShop:
    def test_config_change_applied(self, memory_store, catalog):
        service = BadgeScoringService(memory_store, catalog=catalog, config=ScoringConfig())
        _vote_many(service, "plastic-free", yes=4)
        assert service.get_shop_score(SHOP) == 0

        relaxed = BadgeScoringService(memory_store, catalog=catalog, config=ScoringConfig(min_reports=3))
        assert relaxed.recompute_shop(SHOP) == 150
        assert relaxed.get_shop_score(SHOP) == 150

    def test_uses_loaded_config_by_default(self, memory_store, catalog):
        service = BadgeScoringService(memory_store, catalog=catalog)
        assert service.config.min_reports == 10
