"""Seeded badge catalogs (shop badges and customer achievement badges)."""

from greenscore.catalog.badge_catalog import (
    Catalog,
    clear_cache,
    get_badge_catalog,
    get_user_badge_catalog,
    load_badge_catalog,
    load_user_badge_catalog,
)

__all__ = [
    "Catalog",
    "clear_cache",
    "get_badge_catalog",
    "get_user_badge_catalog",
    "load_badge_catalog",
    "load_user_badge_catalog",
]
