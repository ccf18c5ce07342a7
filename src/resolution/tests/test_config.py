"""
Tests for environment-driven settings.
"""

import pytest

from resolution.config import (
    EXECUTION_MODE_PRODUCTION,
    EXECUTION_MODE_TEST,
    Settings,
    get_execution_mode,
    load_env_files,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "CORE_EXECUTION_MODE",
        "OMS_API_BASE_URL",
        "OMS_TIMEOUT_SECONDS",
        "REDIS_URL",
        "EVIDENCE_TABLE",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings()

    assert settings.OMS_API_BASE_URL == "http://localhost:4000"
    assert settings.OMS_TIMEOUT_SECONDS == 10.0
    assert settings.EVIDENCE_TABLE == "evidence_packets"
    assert settings.REDIS_URL is None
    assert settings.EXECUTION_MODE == EXECUTION_MODE_PRODUCTION


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("OMS_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    monkeypatch.setenv("CORE_EXECUTION_MODE", "test")

    settings = Settings()

    assert settings.OMS_TIMEOUT_SECONDS == 2.5
    assert settings.REDIS_URL == "redis://localhost:6379/0"
    assert settings.EXECUTION_MODE == EXECUTION_MODE_TEST


def test_invalid_number_raises(monkeypatch):
    monkeypatch.setenv("OMS_TIMEOUT_SECONDS", "ten")

    with pytest.raises(ValueError, match="OMS_TIMEOUT_SECONDS"):
        Settings()


def test_unknown_execution_mode_defaults_to_production(monkeypatch):
    monkeypatch.setenv("CORE_EXECUTION_MODE", "staging")

    assert get_execution_mode() == EXECUTION_MODE_PRODUCTION


def test_env_local_overrides_env(tmp_path, monkeypatch):
    """Test that .env.local overrides everything while .env never overrides the process environment."""
    monkeypatch.setenv("EVIDENCE_TABLE", "from_process")
    (tmp_path / ".env").write_text("EVIDENCE_TABLE=from_env\nOMS_API_BASE_URL=http://from-env\n")
    (tmp_path / ".env.local").write_text("EVIDENCE_TABLE=from_local\n")
    monkeypatch.setenv("OMS_API_BASE_URL", "http://from-process")

    load_env_files(tmp_path)
    settings = Settings()

    assert settings.EVIDENCE_TABLE == "from_local"
    assert settings.OMS_API_BASE_URL == "http://from-process"
