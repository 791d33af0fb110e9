# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging setup shared by the probe service and the `watchman check` command."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Transport libraries log every connection event at DEBUG; the probe records
# those events itself, so they stay at WARNING unless explicitly asked for.
_NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "h2")


def _resolve_level(level: str | None) -> int:
    name = (level or os.getenv("WATCHMAN_LOG_LEVEL") or "INFO").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: str | None = None, *, transport_debug: bool = False) -> int:
    """
    Configure root logging and return the effective level.

    ``level`` falls back to WATCHMAN_LOG_LEVEL, then INFO. Unknown names map to
    INFO rather than failing startup.
    """
    effective = _resolve_level(level)
    logging.basicConfig(level=effective, format=LOG_FORMAT)
    logging.getLogger().setLevel(effective)
    transport_level = effective if transport_debug else max(effective, logging.WARNING)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)
    return effective


__all__ = ["LOG_FORMAT", "setup_logging"]
