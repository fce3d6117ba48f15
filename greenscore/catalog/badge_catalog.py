"""Badge Catalog: the fixed set of shop badges and customer achievement badges.

Loaded once from config/badge_catalog.yaml and config/user_badges.yaml and
cached for the life of the process.

Usage:
    from greenscore.catalog import get_badge_catalog

    catalog = get_badge_catalog()
    catalog.get("plastic-free").category  # BadgeCategory.PLASTIC
    catalog.by_category()[BadgeCategory.ENERGY]  # 5 definitions
"""

import logging
from collections import Counter
from pathlib import Path
from typing import Generic, Iterator, Optional, TypeVar

import yaml
from pydantic import ValidationError

from greenscore.config import get_badge_catalog_path, get_user_badge_catalog_path
from greenscore.constants import BADGES_PER_CATEGORY, TOTAL_BADGES
from greenscore.errors import CatalogError, InvalidArgumentError
from greenscore.schemas.badge import BadgeDefinition, CategoryInfo, UserBadgeDefinition
from greenscore.schemas.enums import BadgeCategory, UserBadgeCategory

logger = logging.getLogger(__name__)

D = TypeVar("D", BadgeDefinition, UserBadgeDefinition)


class Catalog(Generic[D]):
    """Immutable, ordered collection of badge definitions keyed by id."""

    def __init__(self, definitions: list[D], categories: dict, category_enum: type):
        self._definitions = tuple(definitions)
        self._by_id = {d.id: d for d in self._definitions}
        self._categories = dict(categories)
        self._category_enum = category_enum

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[D]:
        return iter(self._definitions)

    def __contains__(self, badge_id: str) -> bool:
        return badge_id in self._by_id

    @property
    def ids(self) -> list[str]:
        return [d.id for d in self._definitions]

    def get(self, badge_id: str) -> D:
        """Look up a definition; unknown ids are a caller error."""
        try:
            return self._by_id[badge_id]
        except KeyError:
            raise InvalidArgumentError(f"Unknown badge id: {badge_id!r}") from None

    def by_category(self) -> dict:
        """Definitions grouped by category, in enum order (every category present)."""
        grouped = {category: [] for category in self._category_enum}
        for definition in self._definitions:
            grouped[definition.category].append(definition)
        return grouped

    def category_info(self, category) -> CategoryInfo:
        return self._categories[self._category_enum(category)]


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        raise CatalogError(f"Badge catalog not found at {path}")
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if not isinstance(raw, dict):
        raise CatalogError(f"Badge catalog {path} must be a mapping with 'badges' and 'categories'")
    return raw


def _parse(raw: dict, model: type, category_enum: type, path: Path) -> tuple[list, dict]:
    try:
        definitions = [model(**entry) for entry in raw.get("badges") or []]
        categories = {category_enum(k): CategoryInfo(**v) for k, v in (raw.get("categories") or {}).items()}
    except (ValidationError, TypeError, ValueError) as e:
        raise CatalogError(f"Invalid badge catalog {path}: {e}") from e

    duplicates = [badge_id for badge_id, n in Counter(d.id for d in definitions).items() if n > 1]
    if duplicates:
        raise CatalogError(f"Duplicate badge ids in {path}: {sorted(duplicates)}")

    missing = set(category_enum) - set(categories)
    if missing:
        raise CatalogError(f"Catalog {path} missing category info for: {sorted(m.value for m in missing)}")
    return definitions, categories


def load_badge_catalog(path: Optional[Path] = None) -> Catalog[BadgeDefinition]:
    """Load and validate the shop badge catalog (20 badges, 5 per category)."""
    path = path or get_badge_catalog_path()
    definitions, categories = _parse(_read_yaml(path), BadgeDefinition, BadgeCategory, path)

    if len(definitions) != TOTAL_BADGES:
        raise CatalogError(f"Expected {TOTAL_BADGES} badges in {path}, found {len(definitions)}")
    counts = Counter(d.category for d in definitions)
    for category in BadgeCategory:
        if counts[category] != BADGES_PER_CATEGORY:
            raise CatalogError(
                f"Expected {BADGES_PER_CATEGORY} {category.value} badges in {path}, found {counts[category]}"
            )

    logger.info(f"Loaded {len(definitions)} shop badges from {path}")
    return Catalog(definitions, categories, BadgeCategory)


def load_user_badge_catalog(path: Optional[Path] = None) -> Catalog[UserBadgeDefinition]:
    """Load the customer achievement badge catalog."""
    path = path or get_user_badge_catalog_path()
    definitions, categories = _parse(_read_yaml(path), UserBadgeDefinition, UserBadgeCategory, path)
    logger.info(f"Loaded {len(definitions)} customer badges from {path}")
    return Catalog(definitions, categories, UserBadgeCategory)


# Module-level cache
_badge_catalog_cache: Optional[Catalog[BadgeDefinition]] = None
_user_badge_catalog_cache: Optional[Catalog[UserBadgeDefinition]] = None


def get_badge_catalog() -> Catalog[BadgeDefinition]:
    global _badge_catalog_cache
    if _badge_catalog_cache is None:
        _badge_catalog_cache = load_badge_catalog()
    return _badge_catalog_cache


def get_user_badge_catalog() -> Catalog[UserBadgeDefinition]:
    global _user_badge_catalog_cache
    if _user_badge_catalog_cache is None:
        _user_badge_catalog_cache = load_user_badge_catalog()
    return _user_badge_catalog_cache


def clear_cache():
    """Clear the catalog caches (useful for testing)."""
    global _badge_catalog_cache, _user_badge_catalog_cache
    _badge_catalog_cache = None
    _user_badge_catalog_cache = None
