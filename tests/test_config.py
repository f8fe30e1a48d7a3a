"""
Tests for settings defaults.
"""

from app.config import Settings


def test_unconfigured_environment_is_production(monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)

    settings = Settings(_env_file=None)

    assert settings.ENVIRONMENT == "production"
    assert settings.is_development is False


def test_development_is_opt_in(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "development")

    assert Settings(_env_file=None).is_development is True
