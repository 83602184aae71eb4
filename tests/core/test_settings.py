"""Tests for rbxfetch.core.settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from rbxfetch.core.settings import CacheMode, RbxFetchSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for key in ("CACHE_MODE", "CACHE_LOCATION", "TIMEOUT", "LOG_LEVEL", "JSON_LOGS", "CONFIG_FILE"):
        monkeypatch.delenv(f"RBXFETCH_{key}", raising=False)
    # Keep a stray .env in the working directory out of the way.
    monkeypatch.chdir(tmp_path)


class TestDefaults:
    def test_defaults(self):
        settings = RbxFetchSettings()
        assert settings.cache_mode is CacheMode.TEMP
        assert settings.cache_location is None
        assert settings.timeout == 30.0
        assert settings.log_level == "WARNING"
        assert settings.json_logs is None
        assert settings.config_file is None


class TestEnvironment:
    def test_reads_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("RBXFETCH_CACHE_MODE", "custom")
        monkeypatch.setenv("RBXFETCH_CACHE_LOCATION", "/var/cache/rbx")
        monkeypatch.setenv("RBXFETCH_TIMEOUT", "5")
        settings = RbxFetchSettings()
        assert settings.cache_mode is CacheMode.CUSTOM
        assert settings.cache_location == Path("/var/cache/rbx")
        assert settings.timeout == 5.0

    def test_reads_dotenv(self, tmp_path):
        (tmp_path / ".env").write_text("RBXFETCH_CACHE_MODE=perm\n")
        assert RbxFetchSettings().cache_mode is CacheMode.PERM

    def test_kwargs_override_env(self, monkeypatch):
        monkeypatch.setenv("RBXFETCH_CACHE_MODE", "perm")
        assert RbxFetchSettings(cache_mode="none").cache_mode is CacheMode.NONE


class TestValidation:
    def test_unknown_cache_mode_rejected(self):
        with pytest.raises(ValidationError):
            RbxFetchSettings(cache_mode="forever")

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            RbxFetchSettings(timeout=0)


def test_cache_mode_values():
    assert [m.value for m in CacheMode] == ["none", "temp", "perm", "custom"]
