"""Tests for loading and validating the badge catalogs."""

from pathlib import Path

import pytest
import yaml
from greenscore.catalog import get_badge_catalog, get_user_badge_catalog, load_badge_catalog
from greenscore.errors import CatalogError, InvalidArgumentError
from greenscore.schemas.enums import BadgeCategory, UserBadgeCategory

CONFIG_DIR = Path(__file__).parent.parent / "config"


def _write_catalog(tmp_path, mutate) -> Path:
    raw = yaml.safe_load((CONFIG_DIR / "badge_catalog.yaml").read_text(encoding="utf-8"))
    mutate(raw)
    path = tmp_path / "badge_catalog.yaml"
    path.write_text(yaml.safe_dump(raw, allow_unicode=True), encoding="utf-8")
    return path


class TestShippedCatalog:
    def test_twenty_badges(self, catalog):
        assert len(catalog) == 20

    def test_five_per_category(self, catalog):
        grouped = catalog.by_category()
        assert list(grouped) == list(BadgeCategory)
        assert all(len(badges) == 5 for badges in grouped.values())

    def test_unique_ids(self, catalog):
        assert len(set(catalog.ids)) == 20

    def test_lookup(self, catalog):
        badge = catalog.get("plastic-free")
        assert badge.name == "Plastic-Free Champ"
        assert badge.category == BadgeCategory.PLASTIC
        assert "plastic-free" in catalog

    def test_unknown_badge(self, catalog):
        with pytest.raises(InvalidArgumentError):
            catalog.get("plastic-frea")

    def test_category_info(self, catalog):
        assert catalog.category_info("energy").name == "Energy & Resources"
        assert catalog.category_info(BadgeCategory.COMMUNITY).name == "Community & Consistency"

    def test_definitions_are_frozen(self, catalog):
        with pytest.raises(Exception):
            catalog.get("compliance").name = "Renamed"

    def test_cached_loader(self):
        assert get_badge_catalog() is get_badge_catalog()
        assert len(get_badge_catalog()) == 20


class TestInvalidCatalog:
    def test_missing_badge(self, tmp_path):
        path = _write_catalog(tmp_path, lambda raw: raw["badges"].pop())
        with pytest.raises(CatalogError, match="Expected 20"):
            load_badge_catalog(path)

    def test_unbalanced_categories(self, tmp_path):
        def move_one(raw):
            raw["badges"][0]["category"] = "energy"

        with pytest.raises(CatalogError, match="plastic"):
            load_badge_catalog(_write_catalog(tmp_path, move_one))

    def test_duplicate_id(self, tmp_path):
        def duplicate(raw):
            raw["badges"][1]["id"] = raw["badges"][0]["id"]

        with pytest.raises(CatalogError, match="Duplicate"):
            load_badge_catalog(_write_catalog(tmp_path, duplicate))

    def test_unknown_category(self, tmp_path):
        def typo(raw):
            raw["badges"][0]["category"] = "plastik"

        with pytest.raises(CatalogError):
            load_badge_catalog(_write_catalog(tmp_path, typo))

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError, match="not found"):
            load_badge_catalog(tmp_path / "nope.yaml")


class TestUserBadgeCatalog:
    def test_ten_badges(self):
        catalog = get_user_badge_catalog()
        assert len(catalog) == 10

    def test_categories(self):
        grouped = get_user_badge_catalog().by_category()
        assert {c: len(b) for c, b in grouped.items()} == {
            UserBadgeCategory.REPORTING: 3,
            UserBadgeCategory.IMPACT: 3,
            UserBadgeCategory.CONSISTENCY: 2,
            UserBadgeCategory.COMMUNITY: 2,
        }

    def test_requirement(self):
        badge = get_user_badge_catalog().get("eco-watcher")
        assert badge.requirement_type == "accepted_reports"
        assert badge.requirement_value == 10
