# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level Watchman facade shared by the HTTP service and the CLI."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .config import ProbeSettings, load_probe_settings
from .http.fetch import fetch_once
from .models.check import CheckRequest, CheckResponse
from .probe.normalize import normalize_check_request
from .probe.redirects import Fetcher, chase_redirects
from .utils.duration import format_duration

logger = logging.getLogger(__name__)


class Watchman:
    """
    Runs probes against the process-wide defaults it was built with.

    Instances hold no per-probe state and may be shared across threads.
    """

    def __init__(self, settings: ProbeSettings | None = None, *, fetch: Fetcher = fetch_once):
        self.settings = settings or load_probe_settings()
        self._fetch = fetch

    def normalize(self, payload: Mapping[str, Any]) -> CheckRequest:
        return normalize_check_request(payload, self.settings)

    def check(self, payload: Mapping[str, Any] | CheckRequest) -> CheckResponse:
        request = payload if isinstance(payload, CheckRequest) else self.normalize(payload)
        logger.info(
            "checking %s (timeout %s, up to %d redirects)",
            request.url,
            format_duration(request.timeout),
            request.redirects_to_follow,
        )
        return chase_redirects(request, user_agent=self.settings.user_agent, fetch=self._fetch)
