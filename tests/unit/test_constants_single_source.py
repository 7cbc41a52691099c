"""Test that reconciliation constants come from Settings and agree with module defaults."""

import pytest

from backend.app.budget.reconciler import (
    DAY_MAX_ATTEMPTS,
    DEFAULT_MAX_RATIO,
    DEFAULT_MIN_RATIO,
    TRIP_MAX_ATTEMPTS,
)
from backend.app.config import Settings, get_settings


def test_settings_accessible() -> None:
    """Test that Settings can be imported and accessed."""
    settings = get_settings()
    assert settings is not None
    assert get_settings() is settings


def test_ratio_defaults_match_reconciler() -> None:
    settings = Settings()
    assert settings.target_min_ratio == DEFAULT_MIN_RATIO
    assert settings.target_max_ratio == DEFAULT_MAX_RATIO
    assert 0 <= settings.target_min_ratio <= settings.target_max_ratio <= 1


def test_attempt_defaults_match_reconciler() -> None:
    settings = Settings()
    assert settings.trip_max_attempts == TRIP_MAX_ATTEMPTS
    assert settings.day_max_attempts == DAY_MAX_ATTEMPTS


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TARGET_MIN_RATIO", "0.6")
    monkeypatch.setenv("DAY_MAX_ATTEMPTS", "3")

    settings = Settings()

    assert settings.target_min_ratio == 0.6
    assert settings.day_max_attempts == 3


def test_api_key_is_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-hidden")

    settings = Settings()

    assert settings.openai_api_key is not None
    assert "sk-hidden" not in repr(settings)
    assert settings.openai_api_key.get_secret_value() == "sk-hidden"
