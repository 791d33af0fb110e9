# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Watchman package entrypoint.

Watchman is a synthetic-monitoring probe: it issues a single GET against a
target, times every network phase (DNS, TCP connect, TLS handshake, server
processing, content transfer), walks redirects by hand up to a bound, and
reports the last hop. The probe runs behind a small JSON HTTP service or from
the command line.
"""

from .config import ProbeSettings, load_probe_settings
from .errors import ConfigError, InvalidRequestError, InvalidTargetError, InvalidTimeoutError
from .http import fetch_once
from .log import setup_logging
from .models import CheckRequest, CheckResponse, PhaseDurations
from .probe import chase_redirects, normalize_check_request
from .runtime import Watchman
from .version import __version__

__all__ = [
    "CheckRequest",
    "CheckResponse",
    "ConfigError",
    "InvalidRequestError",
    "InvalidTargetError",
    "InvalidTimeoutError",
    "PhaseDurations",
    "ProbeSettings",
    "Watchman",
    "chase_redirects",
    "fetch_once",
    "load_probe_settings",
    "normalize_check_request",
    "setup_logging",
    "__version__",
]
