"""Tests for environment-driven paths and database settings."""

from greenscore import config


def test_config_dir_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("GREENSCORE_CONFIG_DIR", str(tmp_path))
    assert config.get_config_dir() == tmp_path.resolve()
    assert config.get_scoring_config_path() == tmp_path.resolve() / "scoring.yaml"


def test_config_dir_default(monkeypatch):
    monkeypatch.delenv("GREENSCORE_CONFIG_DIR", raising=False)
    assert config.get_badge_catalog_path().name == "badge_catalog.yaml"
    assert config.get_config_dir().name == "config"


def test_db_settings(monkeypatch):
    for key in ("HOST", "PORT", "USER", "PASSWORD", "DATABASE"):
        monkeypatch.delenv(f"GREENSCORE_DB_{key}", raising=False)
    monkeypatch.setenv("GREENSCORE_DB_PORT", "3307")
    settings = config.get_db_settings()
    assert settings["port"] == 3307
    assert settings["host"] == "127.0.0.1"
    assert settings["database"] == "greenscore"


def test_log_level(monkeypatch):
    monkeypatch.setenv("GREENSCORE_LOG_LEVEL", "DEBUG")
    assert config.get_log_level() == "DEBUG"
