"""Tests for the central configuration loader (ascend_ai/config.py)."""

import pytest
import yaml

from ascend_ai.config import (
    CacheSettings,
    CallType,
    RateLimitRule,
    RateLimitSettings,
    Settings,
    StorageSettings,
    _apply_dict,
    _load_yaml,
    get_settings,
)
from ascend_ai.exceptions import ConfigurationError


def _write_config(tmp_path, data):
    f = tmp_path / "config.yaml"
    f.write_text(yaml.dump(data))
    return f


# ── YAML loading ────────────────────────────────────────


class TestLoadYaml:
    def test_loads_valid_yaml(self, tmp_path):
        f = tmp_path / "cfg.yaml"
        f.write_text("cache:\n  max_entries: 7\n")
        assert _load_yaml(f)["cache"]["max_entries"] == 7

    def test_returns_empty_dict_for_missing_file(self, tmp_path):
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_returns_empty_dict_for_non_dict_yaml(self, tmp_path):
        f = tmp_path / "cfg.yaml"
        f.write_text("- item1\n- item2\n")
        assert _load_yaml(f) == {}


# ── Settings defaults ───────────────────────────────────


class TestSettingsDefaults:
    def test_default_tables(self):
        s = Settings()
        assert s.cache.ttl_ms["coaching"] == 30 * 60 * 1000
        assert s.cache.ttl_ms["decomposition"] == 24 * 60 * 60 * 1000
        assert s.cache.max_entries == 100
        assert s.rate_limits.limits["insights"].max_requests == 5
        assert s.rate_limits.limits["global"].max_requests == 100
        assert s.storage.backend == "memory"

    def test_ttl_for_unknown_type_falls_back_to_coaching(self):
        assert CacheSettings().ttl_for("unknown") == 30 * 60 * 1000

    def test_ttl_for_accepts_enum(self):
        assert CacheSettings().ttl_for(CallType.INSIGHTS) == 2 * 60 * 60 * 1000

    def test_rule_for_unknown_type_raises(self):
        with pytest.raises(ConfigurationError, match="No rate limit"):
            RateLimitSettings().rule_for("poetry")

    def test_call_type_renders_as_value(self):
        assert str(CallType.COACHING) == "coaching"
        assert f"{CallType.SUGGESTIONS}" == "suggestions"


class TestValidate:
    def test_defaults_are_valid(self):
        Settings().validate()

    def test_rejects_non_positive_max_entries(self):
        with pytest.raises(ConfigurationError, match="max_entries"):
            Settings(cache=CacheSettings(max_entries=0)).validate()

    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ConfigurationError, match="ttl_ms.coaching"):
            Settings(cache=CacheSettings(ttl_ms={"coaching": 0})).validate()

    def test_requires_global_limit(self):
        limits = RateLimitSettings(limits={"coaching": RateLimitRule(1, 1000)})
        with pytest.raises(ConfigurationError, match="global"):
            Settings(rate_limits=limits).validate()

    def test_rejects_non_positive_window(self):
        limits = RateLimitSettings()
        limits.limits["coaching"] = RateLimitRule(max_requests=5, window_ms=0)
        with pytest.raises(ConfigurationError, match="coaching"):
            Settings(rate_limits=limits).validate()


# ── get_settings() from YAML ────────────────────────────


class TestGetSettings:
    def test_loads_yaml_values(self, tmp_path):
        cfg = _write_config(tmp_path, {
            "cache": {"max_entries": 5, "ttl_ms": {"coaching": 1000}},
            "rate_limits": {"limits": {"suggestions": {"max_requests": 2, "window_ms": 60000}}},
            "transport": {"base_url": "https://example.test/api/ai"},
        })
        s = get_settings(yaml_path=cfg, env_path=tmp_path / ".env", _force_reload=True)
        assert s.cache.max_entries == 5
        assert s.cache.ttl_ms["coaching"] == 1000
        assert s.cache.ttl_ms["insights"] == 2 * 60 * 60 * 1000
        assert s.rate_limits.limits["suggestions"] == RateLimitRule(2, 60000)
        assert s.rate_limits.limits["coaching"].max_requests == 20
        assert s.transport.base_url == "https://example.test/api/ai"

    def test_missing_yaml_uses_defaults(self, tmp_path):
        s = get_settings(yaml_path=tmp_path / "nope.yaml", env_path=tmp_path / ".env", _force_reload=True)
        assert s.cache.max_entries == 100

    def test_singleton_returns_same_object(self, tmp_path):
        cfg = _write_config(tmp_path, {"cache": {"max_entries": 9}})
        s1 = get_settings(yaml_path=cfg, env_path=tmp_path / ".env", _force_reload=True)
        assert get_settings() is s1

    def test_force_reload_reloads(self, tmp_path):
        cfg = _write_config(tmp_path, {"cache": {"max_entries": 11}})
        assert get_settings(yaml_path=cfg, _force_reload=True).cache.max_entries == 11
        cfg.write_text(yaml.dump({"cache": {"max_entries": 22}}))
        assert get_settings(yaml_path=cfg, _force_reload=True).cache.max_entries == 22

    def test_invalid_rate_limit_raises(self, tmp_path):
        cfg = _write_config(tmp_path, {
            "rate_limits": {"limits": {"coaching": {"max_requests": "lots"}}},
        })
        with pytest.raises(ConfigurationError):
            get_settings(yaml_path=cfg, _force_reload=True)

    def test_invalid_values_fail_validation(self, tmp_path):
        cfg = _write_config(tmp_path, {"cache": {"max_entries": -1}})
        with pytest.raises(ConfigurationError):
            get_settings(yaml_path=cfg, _force_reload=True)


# ── Environment variable overrides ──────────────────────


class TestEnvOverrides:
    def test_env_override_string(self, tmp_path, monkeypatch):
        cfg = _write_config(tmp_path, {})
        monkeypatch.setenv("ASCEND_STORAGE_BACKEND", "file")
        s = get_settings(yaml_path=cfg, _force_reload=True)
        assert s.storage.backend == "file"

    def test_env_override_float(self, tmp_path, monkeypatch):
        cfg = _write_config(tmp_path, {})
        monkeypatch.setenv("ASCEND_TRANSPORT_TIMEOUT_SECONDS", "2.5")
        s = get_settings(yaml_path=cfg, _force_reload=True)
        assert s.transport.timeout_seconds == 2.5

    def test_env_overrides_trump_yaml(self, tmp_path, monkeypatch):
        cfg = _write_config(tmp_path, {"transport": {"base_url": "http://yaml"}})
        monkeypatch.setenv("ASCEND_TRANSPORT_BASE_URL", "http://env")
        s = get_settings(yaml_path=cfg, _force_reload=True)
        assert s.transport.base_url == "http://env"

    def test_invalid_env_value_is_ignored(self, tmp_path, monkeypatch):
        cfg = _write_config(tmp_path, {})
        monkeypatch.setenv("ASCEND_TRANSPORT_TIMEOUT_SECONDS", "soon")
        s = get_settings(yaml_path=cfg, _force_reload=True)
        assert s.transport.timeout_seconds == 30.0

    def test_limit_tables_ignore_environment(self, tmp_path, monkeypatch):
        cfg = _write_config(tmp_path, {})
        monkeypatch.setenv("ASCEND_CACHE_MAX_ENTRIES", "3")
        monkeypatch.setenv("ASCEND_RATE_LIMITS_STORAGE_KEY", "other")
        s = get_settings(yaml_path=cfg, _force_reload=True)
        assert s.cache.max_entries == 100
        assert s.rate_limits.storage_key == "ascend_ai_rate_limits"

    def test_dotenv_file_is_loaded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ASCEND_STORAGE_FILE_DIR", "unset")
        env = tmp_path / ".env"
        env.write_text("ASCEND_STORAGE_FILE_DIR=/var/ascend\n")
        s = get_settings(yaml_path=_write_config(tmp_path, {}), env_path=env, _force_reload=True)
        assert s.storage.file_dir == "/var/ascend"


# ── _apply_dict helper ──────────────────────────────────


class TestApplyDict:
    def test_applies_known_keys(self):
        target = StorageSettings()
        _apply_dict(target, {"backend": "redis", "redis_prefix": "x"})
        assert target.backend == "redis"
        assert target.redis_prefix == "x"

    def test_ignores_unknown_keys(self):
        target = StorageSettings()
        _apply_dict(target, {"unknown_field": "value"})
        assert target.backend == "memory"

    def test_merges_dict_fields(self):
        target = CacheSettings()
        _apply_dict(target, {"ttl_ms": {"insights": 10}})
        assert target.ttl_ms["insights"] == 10
        assert target.ttl_ms["coaching"] == 30 * 60 * 1000


# ── Integration: real config/config.yaml ─────────────────


class TestRealConfig:
    def test_loads_project_config_yaml(self, monkeypatch):
        for name in ("ASCEND_STORAGE_BACKEND", "ASCEND_TRANSPORT_BASE_URL"):
            monkeypatch.delenv(name, raising=False)
        s = get_settings(_force_reload=True)
        assert s.cache.max_entries == 100
        assert s.cache.ttl_ms["suggestions"] == 3600000
        assert s.rate_limits.limits["global"].window_ms == 3600000
        assert s.storage.backend == "memory"
