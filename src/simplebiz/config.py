"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from simplebiz.duration import parse_duration
from simplebiz.types import Duration

DEFAULT_API_URL = "http://localhost:5117"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _optional(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(name, "").strip()
    return value or None


@dataclass(frozen=True, slots=True)
class Settings:
    """Site settings. Build with `Settings.from_env()` or directly in tests."""

    api_url: str = DEFAULT_API_URL
    revalidation_secret: str | None = None
    revalidate: Duration = "1h"
    cache_prefix: str = "simplebiz"
    cache_max_items: int | None = None
    redis_url: str | None = None
    session_ttl: Duration = "8h"
    session_cookie_secure: bool = False
    api_timeout: float = 30.0
    log_level: str = "INFO"
    site_name: str = "Simple Biz Toolkit"

    def __post_init__(self) -> None:
        # Fail at startup rather than on the first request
        parse_duration(self.revalidate)
        parse_duration(self.session_ttl)
        if self.api_timeout <= 0:
            raise ValueError("api_timeout must be positive")

    @property
    def revalidate_ms(self) -> int:
        return parse_duration(self.revalidate)

    @property
    def session_ttl_ms(self) -> int:
        return parse_duration(self.session_ttl)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        """Read settings from `env` (default: `os.environ`)."""
        env = os.environ if env is None else env
        max_items = _optional(env, "CACHE_MAX_ITEMS")
        return cls(
            api_url=(
                _optional(env, "API_URL")
                or _optional(env, "NEXT_PUBLIC_API_URL")
                or DEFAULT_API_URL
            ).rstrip("/"),
            revalidation_secret=_optional(env, "REVALIDATION_SECRET"),
            revalidate=_optional(env, "REVALIDATE") or "1h",
            cache_prefix=_optional(env, "CACHE_PREFIX") or "simplebiz",
            cache_max_items=int(max_items) if max_items else None,
            redis_url=_optional(env, "REDIS_URL"),
            session_ttl=_optional(env, "SESSION_TTL") or "8h",
            session_cookie_secure=(
                (_optional(env, "SESSION_COOKIE_SECURE") or "").lower() in _TRUE_VALUES
            ),
            api_timeout=float(_optional(env, "API_TIMEOUT") or 30.0),
            log_level=(_optional(env, "LOG_LEVEL") or "INFO").upper(),
            site_name=_optional(env, "SITE_NAME") or "Simple Biz Toolkit",
        )


__all__ = ["DEFAULT_API_URL", "Settings"]
