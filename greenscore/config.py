"""
Central configuration for paths and database settings.

YAML seed/config files live in config/ at the repository root unless
GREENSCORE_CONFIG_DIR points elsewhere.

Database: DoltDB or any MySQL-compatible server. Configure via environment variables:
  - GREENSCORE_DB_HOST (default: 127.0.0.1)
  - GREENSCORE_DB_PORT (default: 3306)
  - GREENSCORE_DB_USER (default: root)
  - GREENSCORE_DB_PASSWORD (default: empty)
  - GREENSCORE_DB_DATABASE (default: greenscore)
"""

import os
from pathlib import Path


def get_config_dir() -> Path:
    """
    Get the directory holding the YAML catalog and scoring overrides.

    Uses GREENSCORE_CONFIG_DIR environment variable if set, otherwise defaults
    to config/ next to the greenscore package.

    Returns:
        Path to config directory
    """
    env_path = os.environ.get("GREENSCORE_CONFIG_DIR")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return Path(__file__).parent.parent / "config"


def get_badge_catalog_path() -> Path:
    """Get the shop badge catalog YAML path."""
    return get_config_dir() / "badge_catalog.yaml"


def get_user_badge_catalog_path() -> Path:
    """Get the customer achievement badge catalog YAML path."""
    return get_config_dir() / "user_badges.yaml"


def get_scoring_config_path() -> Path:
    """Get the optional scoring overrides YAML path."""
    return get_config_dir() / "scoring.yaml"


def get_log_level() -> str:
    return os.environ.get("GREENSCORE_LOG_LEVEL", "INFO")


def get_db_settings() -> dict:
    """Database connection settings from the environment."""
    return {
        "host": os.environ.get("GREENSCORE_DB_HOST", "127.0.0.1"),
        "port": int(os.environ.get("GREENSCORE_DB_PORT", "3306")),
        "user": os.environ.get("GREENSCORE_DB_USER", "root"),
        "password": os.environ.get("GREENSCORE_DB_PASSWORD", ""),
        "database": os.environ.get("GREENSCORE_DB_DATABASE", "greenscore"),
    }
