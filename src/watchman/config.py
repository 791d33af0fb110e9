# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for Watchman."""

import os
from dataclasses import dataclass

from .errors import ConfigError
from .utils.duration import parse_duration
from .version import __version__

DEFAULT_USER_AGENT = f"watchman-{__version__}"


def _duration_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        parsed = parse_duration(value)
    except ValueError as exc:
        raise ConfigError(f"invalid {name.lower()} {exc}") from exc
    if parsed <= 0:
        raise ConfigError(f"invalid {name.lower()} {value!r}: must be positive")
    return parsed


def _int_env(name: str, default: int, *, minimum: int = 0) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigError(f"invalid {name.lower()} {value!r}") from exc
    if parsed < minimum:
        raise ConfigError(f"invalid {name.lower()} {value!r}: must be >= {minimum}")
    return parsed


@dataclass(frozen=True)
class ProbeSettings:
    """Process-wide probe defaults, read once at startup."""

    timeout: float = 0.1
    max_redirects: int = 3
    user_agent: str = DEFAULT_USER_AGENT
    host: str = "0.0.0.0"
    port: int = 8080
    sentry_dsn: str | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ProbeSettings":
        """Create settings from environment variables (evaluated at call time)."""
        return cls(
            timeout=_duration_env("TIMEOUT", cls.timeout),
            max_redirects=_int_env("MAX_REDIRECTS", cls.max_redirects),
            user_agent=os.getenv("WATCHMAN_USER_AGENT") or cls.user_agent,
            host=os.getenv("HOST") or cls.host,
            port=_int_env("PORT", cls.port, minimum=1),
            sentry_dsn=os.getenv("SENTRY_API") or None,
            log_level=(os.getenv("WATCHMAN_LOG_LEVEL") or cls.log_level).upper(),
        )


def load_probe_settings() -> ProbeSettings:
    """Load probe settings from the environment with the service defaults."""
    return ProbeSettings.from_env()
