# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Optional crash/error reporting through Sentry."""

from __future__ import annotations

import logging

import sentry_sdk
from sentry_sdk.utils import BadDsn

from .config import ProbeSettings
from .errors import ConfigError
from .version import __version__

logger = logging.getLogger(__name__)

FLUSH_TIMEOUT = 2.0


def init_error_reporting(settings: ProbeSettings) -> bool:
    """Initialize Sentry when a DSN is configured; returns whether reporting is active."""
    if not settings.sentry_dsn:
        return False
    try:
        sentry_sdk.init(dsn=settings.sentry_dsn, release=f"watchman@{__version__}")
    except BadDsn as exc:
        raise ConfigError(f"sentry.Init: {exc}") from exc
    logger.info("error reporting enabled")
    return True


def flush_error_reporting(timeout: float = FLUSH_TIMEOUT) -> None:
    sentry_sdk.flush(timeout=timeout)


__all__ = ["flush_error_reporting", "init_error_reporting"]
