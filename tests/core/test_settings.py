"""Tests for semspine.core.settings."""

import pytest
from pydantic import ValidationError

from semspine.core.settings import SemspineSettings, clear_settings_cache, get_settings


class TestDefaults:
    def test_defaults(self):
        s = SemspineSettings(_env_file=None)
        assert s.default_limit == 50
        assert s.max_limit == 200
        assert s.max_concurrency == 8
        assert s.lineage_max_attempts == 3
        assert s.policy_enabled is False
        assert s.log_format == "console"


class TestEnvOverride:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("SEMSPINE_PLAN_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("SEMSPINE_MAX_CONCURRENCY", "3")
        s = SemspineSettings(_env_file=None)
        assert s.plan_timeout_seconds == 2.5
        assert s.max_concurrency == 3

    def test_default_limit_above_max_rejected(self):
        with pytest.raises(ValidationError):
            SemspineSettings(_env_file=None, default_limit=500, max_limit=100)


class TestCache:
    def test_cached_until_cleared(self, monkeypatch):
        first = get_settings()
        assert get_settings() is first
        monkeypatch.setenv("SEMSPINE_MAX_LIMIT", "75")
        assert get_settings().max_limit == first.max_limit
        clear_settings_cache()
        assert get_settings().max_limit == 75

    def test_force_reload(self):
        first = get_settings()
        assert get_settings(_force_reload=True) is not first
