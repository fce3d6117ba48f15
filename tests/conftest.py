"""Shared fixtures for GreenScore tests.

Database-backed code is tested against mocked cursors; nothing here needs a
running DoltDB.
"""

import sys
from pathlib import Path

import pytest

# Make the repository root importable when tests run without an install
sys.path.insert(0, str(Path(__file__).parent.parent))

from greenscore.catalog import clear_cache as clear_catalog_cache  # noqa: E402
from greenscore.catalog import load_badge_catalog  # noqa: E402
from greenscore.db.stores import InMemoryTallyStore  # noqa: E402
from greenscore.scorers.scoring_config import ScoringConfig  # noqa: E402
from greenscore.scorers.scoring_config import clear_cache as clear_scoring_cache  # noqa: E402
from greenscore.services.badge_service import BadgeScoringService  # noqa: E402

CONFIG_DIR = Path(__file__).parent.parent / "config"


@pytest.fixture(autouse=True)
def _isolate_caches(monkeypatch):
    """Point config at the shipped YAML files and drop module caches between tests."""
    monkeypatch.setenv("GREENSCORE_CONFIG_DIR", str(CONFIG_DIR))
    clear_scoring_cache()
    clear_catalog_cache()
    yield
    clear_scoring_cache()
    clear_catalog_cache()


@pytest.fixture
def default_config():
    return ScoringConfig()


@pytest.fixture
def catalog():
    return load_badge_catalog(CONFIG_DIR / "badge_catalog.yaml")


@pytest.fixture
def memory_store():
    return InMemoryTallyStore()


@pytest.fixture
def service(memory_store, catalog, default_config):
    return BadgeScoringService(memory_store, catalog=catalog, config=default_config)
