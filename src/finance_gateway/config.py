"""Process-wide configuration, read once at startup."""

import os
from dataclasses import dataclass

_FALSE_VALUES = {"false", "0", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in _FALSE_VALUES


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


@dataclass(frozen=True)
class GatewayConfig:
    """Immutable gateway settings."""

    cache_enabled: bool = True
    cache_ttl: int = 300  # 5 minutes
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    max_workers: int = 4
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    call_timeout: float = 30.0
    # 0 means unbounded fan-out
    fan_out_limit: int = 0

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """Build config from environment variables, falling back to defaults."""
        ttl = _env_int("CACHE_TTL", cls.cache_ttl)
        return cls(
            cache_enabled=_env_bool("CACHE_ENABLED", cls.cache_enabled),
            cache_ttl=ttl if ttl > 0 else cls.cache_ttl,
            log_level=os.environ.get("LOG_LEVEL", cls.log_level).upper(),
            host=os.environ.get("HOST", cls.host),
            port=_env_int("PORT", cls.port),
            max_workers=max(1, _env_int("YF_MAX_WORKERS", cls.max_workers)),
            max_retries=max(0, _env_int("YF_MAX_RETRIES", cls.max_retries)),
            base_delay=_env_float("YF_BASE_DELAY", cls.base_delay),
            max_delay=_env_float("YF_MAX_DELAY", cls.max_delay),
            call_timeout=_env_float("YF_CALL_TIMEOUT", cls.call_timeout),
            fan_out_limit=max(0, _env_int("FANOUT_LIMIT", cls.fan_out_limit)),
        )
