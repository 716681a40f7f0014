"""
Central configuration loader for the Ascend AI mediation layer.

Reads ``config/config.yaml`` and ``.env``, merges environment-variable
overrides (``ASCEND_`` prefix) for the storage and transport sections,
and exposes a typed :class:`Settings` singleton via :func:`get_settings`.

The cache TTL table and the rate-limit table are static configuration:
they come from code defaults or YAML, never from the environment.
"""

import logging
import os
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from ascend_ai.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Resolve project root (directory containing ``config/``)
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent          # ascend_ai/
_PROJECT_ROOT = _THIS_DIR.parent                     # repo root


def _project_path(*parts: str) -> Path:
    """Build an absolute path relative to the project root."""
    return _PROJECT_ROOT.joinpath(*parts)


# ---------------------------------------------------------------------------
# Call types
# ---------------------------------------------------------------------------


class CallType(str, Enum):
    """Category of AI operation; selects cache TTL and rate-limit budget."""

    COACHING = "coaching"
    SUGGESTIONS = "suggestions"
    INSIGHTS = "insights"
    DECOMPOSITION = "decomposition"

    def __str__(self) -> str:
        return self.value


GLOBAL_LIMIT_KEY = "global"

_HOUR_MS = 60 * 60 * 1000


# ---------------------------------------------------------------------------
# Nested settings dataclasses
# ---------------------------------------------------------------------------


@dataclass
class CacheSettings:
    ttl_ms: Dict[str, int] = field(default_factory=lambda: {
        "coaching": 30 * 60 * 1000,
        "suggestions": _HOUR_MS,
        "insights": 2 * _HOUR_MS,
        "decomposition": 24 * _HOUR_MS,
    })
    max_entries: int = 100
    storage_key: str = "ascend_ai_cache"

    def ttl_for(self, call_type: str) -> int:
        """TTL for *call_type*, falling back to the coaching TTL."""
        name = str(call_type)
        if name in self.ttl_ms:
            return self.ttl_ms[name]
        return self.ttl_ms.get(CallType.COACHING.value, 30 * 60 * 1000)


@dataclass
class RateLimitRule:
    max_requests: int
    window_ms: int


@dataclass
class RateLimitSettings:
    limits: Dict[str, RateLimitRule] = field(default_factory=lambda: {
        "coaching": RateLimitRule(max_requests=20, window_ms=_HOUR_MS),
        "suggestions": RateLimitRule(max_requests=10, window_ms=_HOUR_MS),
        "insights": RateLimitRule(max_requests=5, window_ms=_HOUR_MS),
        "decomposition": RateLimitRule(max_requests=10, window_ms=_HOUR_MS),
        GLOBAL_LIMIT_KEY: RateLimitRule(max_requests=100, window_ms=_HOUR_MS),
    })
    storage_key: str = "ascend_ai_rate_limits"

    def rule_for(self, call_type: str) -> RateLimitRule:
        """Return the rule for *call_type*.

        Raises:
            ConfigurationError: If the type has no configured limit.
        """
        name = str(call_type)
        if name not in self.limits:
            raise ConfigurationError(f"No rate limit configured for '{name}'")
        return self.limits[name]


@dataclass
class StorageSettings:
    backend: str = "memory"
    file_dir: str = "data/storage"
    redis_url: str = "redis://localhost:6379/0"
    redis_prefix: str = "ascend"


@dataclass
class TransportSettings:
    base_url: str = "http://localhost:3000/api/ai"
    timeout_seconds: float = 30.0


@dataclass
class Settings:
    """Top-level settings container."""
    cache: CacheSettings = field(default_factory=CacheSettings)
    rate_limits: RateLimitSettings = field(default_factory=RateLimitSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    transport: TransportSettings = field(default_factory=TransportSettings)

    def validate(self) -> None:
        """Check the static tables for impossible values.

        Raises:
            ConfigurationError: On a non-positive TTL, limit, window,
                or ``max_entries``, or a missing global limit.
        """
        if self.cache.max_entries <= 0:
            raise ConfigurationError("cache.max_entries must be positive")
        for name, ttl in self.cache.ttl_ms.items():
            if ttl <= 0:
                raise ConfigurationError(f"cache.ttl_ms.{name} must be positive")
        if GLOBAL_LIMIT_KEY not in self.rate_limits.limits:
            raise ConfigurationError("rate_limits.limits must define 'global'")
        for name, rule in self.rate_limits.limits.items():
            if rule.max_requests <= 0 or rule.window_ms <= 0:
                raise ConfigurationError(
                    f"rate_limits.limits.{name} needs positive max_requests and window_ms"
                )


# ---------------------------------------------------------------------------
# YAML loader
# ---------------------------------------------------------------------------

def _load_yaml(path: Path) -> Dict[str, Any]:
    """Read and parse a YAML file.  Returns ``{}`` if the file is missing."""
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return data if isinstance(data, dict) else {}


def _apply_dict(target: object, data: Dict[str, Any]) -> None:
    """Apply *data* values onto a dataclass instance, ignoring unknown keys."""
    for key, value in data.items():
        if not hasattr(target, key):
            continue
        current = getattr(target, key)
        if isinstance(current, dict) and isinstance(value, dict):
            current.update(value)
        else:
            setattr(target, key, value)


def _apply_rate_limits(target: RateLimitSettings, data: Dict[str, Any]) -> None:
    """Merge a YAML ``rate_limits`` section into *target*."""
    limits = data.get("limits")
    if isinstance(limits, dict):
        for name, rule in limits.items():
            if not isinstance(rule, dict):
                raise ConfigurationError(f"rate_limits.limits.{name} must be a mapping")
            try:
                target.limits[str(name)] = RateLimitRule(
                    max_requests=int(rule["max_requests"]),
                    window_ms=int(rule["window_ms"]),
                )
            except (KeyError, TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Invalid rate limit for '{name}': {e}"
                ) from e
    if "storage_key" in data:
        target.storage_key = str(data["storage_key"])


# ---------------------------------------------------------------------------
# Env-var overrides  (ASCEND_SECTION_KEY  e.g. ASCEND_TRANSPORT_BASE_URL)
# ---------------------------------------------------------------------------

_ENV_SECTIONS = ["storage", "transport"]

_TYPE_MAP = {
    int: int,
    float: float,
    bool: lambda v: v.lower() in ("1", "true", "yes"),
    str: str,
}


def _apply_env_overrides(settings: Settings) -> None:
    """Override flat scalar fields via ``ASCEND_<SECTION>_<KEY>`` env vars."""
    for section_name in _ENV_SECTIONS:
        section = getattr(settings, section_name, None)
        if section is None:
            continue
        prefix = f"ASCEND_{section_name.upper()}_"
        for key in list(vars(section)):
            env_key = prefix + key.upper()
            env_val = os.environ.get(env_key)
            if env_val is None:
                continue
            current = getattr(section, key)
            cast = _TYPE_MAP.get(type(current), str)
            try:
                setattr(section, key, cast(env_val))
                logger.debug("Env override applied: %s=%s", env_key, env_val)
            except (ValueError, TypeError):
                logger.warning("Invalid env override %s=%s", env_key, env_val)


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_settings: Optional[Settings] = None
_lock = threading.Lock()


def get_settings(
    *,
    yaml_path: Optional[Path] = None,
    env_path: Optional[Path] = None,
    _force_reload: bool = False,
) -> Settings:
    """Return the application-wide :class:`Settings` singleton.

    On first call (or when ``_force_reload=True``) the function:

    1. Calls ``load_dotenv()`` to populate env vars from ``.env``.
    2. Reads ``config/config.yaml``.
    3. Applies ``ASCEND_*`` environment-variable overrides.
    4. Validates the result.

    Args:
        yaml_path: Override the YAML config file path (testing).
        env_path: Override the ``.env`` file path (testing).
        _force_reload: Re-read everything even if already loaded.

    Returns:
        The global ``Settings`` instance.

    Raises:
        ConfigurationError: If the loaded configuration is invalid.
    """
    global _settings

    if _settings is not None and not _force_reload:
        return _settings

    with _lock:
        # Double-check after acquiring lock
        if _settings is not None and not _force_reload:
            return _settings

        dotenv_path = env_path or _project_path(".env")
        load_dotenv(dotenv_path, override=True)

        config_path = yaml_path or _project_path("config", "config.yaml")
        raw = _load_yaml(config_path)

        settings = Settings()

        cache_data = raw.get("cache")
        if isinstance(cache_data, dict):
            _apply_dict(settings.cache, cache_data)

        limit_data = raw.get("rate_limits")
        if isinstance(limit_data, dict):
            _apply_rate_limits(settings.rate_limits, limit_data)

        for section_name in _ENV_SECTIONS:
            section_data = raw.get(section_name)
            if isinstance(section_data, dict):
                _apply_dict(getattr(settings, section_name), section_data)

        _apply_env_overrides(settings)
        settings.validate()

        _settings = settings
        logger.info("Settings loaded from %s", config_path)
        return _settings


def reset_settings() -> None:
    """Clear the cached singleton (for testing)."""
    global _settings
    with _lock:
        _settings = None
