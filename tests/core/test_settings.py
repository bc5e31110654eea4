"""Tests for environment-driven settings."""

from personal_info.core.settings import DEFAULT_CORS_ORIGINS, Settings


def test_defaults(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.delenv("MIN_UPDATE_INTERVAL_SECONDS", raising=False)
    monkeypatch.delenv("CORS_ORIGINS", raising=False)

    settings = Settings(_env_file=None)

    assert settings.database_url == "sqlite://"
    assert settings.min_update_interval_seconds == 15
    assert settings.default_page_size == 5
    assert len(settings.cors_origin_list) == len(DEFAULT_CORS_ORIGINS.split(","))


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MIN_UPDATE_INTERVAL_SECONDS", "30")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test ,")

    settings = Settings(_env_file=None)

    assert settings.min_update_interval_seconds == 30
    assert settings.cors_origin_list == ["http://a.test", "http://b.test"]


def test_invalid_log_level_falls_back_to_info(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    assert Settings(_env_file=None).log_level == "INFO"


def test_log_level_is_uppercased(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")

    assert Settings(_env_file=None).log_level == "DEBUG"
