"""Tests for the recompute script's stored-badge report."""

import recompute
from greenscore.db.repository import ShopBadge


class _FakeShopBadgeRepository:
    def __init__(self, badges):
        self.badges = badges
        self.requested = []

    def get_for_shop(self, shop_id):
        self.requested.append(shop_id)
        return self.badges


def _install(monkeypatch, badges):
    repo = _FakeShopBadgeRepository(badges)
    monkeypatch.setattr(recompute, "ShopBadgeRepository", lambda: repo)
    return repo


class TestPrintShopBadges:
    def test_lists_stored_levels(self, monkeypatch, capsys):
        repo = _install(
            monkeypatch,
            [
                ShopBadge(shop_id="s1", badge_id="plastic-free", yes_count=9, no_count=1, percentage=90, level="gold", is_eligible=True),
                ShopBadge(shop_id="s1", badge_id="water-saver", yes_count=3, no_count=0, percentage=100),
            ],
        )

        assert recompute.print_shop_badges("s1") == 2

        out = capsys.readouterr().out
        assert repo.requested == ["s1"]
        assert "plastic-free" in out
        assert "gold" in out
        assert "needs votes" in out

    def test_no_stored_badges(self, monkeypatch, capsys):
        _install(monkeypatch, [])
        assert recompute.print_shop_badges("s9") == 0
        assert "No votes stored for s9" in capsys.readouterr().out
