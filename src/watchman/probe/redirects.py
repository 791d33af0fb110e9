# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Manual redirect walk over instrumented fetches."""

from __future__ import annotations

import logging
from collections.abc import Callable

import httpx

from ..config import DEFAULT_USER_AGENT
from ..errors import InvalidTargetError
from ..http.fetch import Hop, fetch_once, is_redirect, parse_target_url
from ..models.check import CheckRequest, CheckResponse

logger = logging.getLogger(__name__)

NO_LOCATION_ERROR = "no location to follow"

Fetcher = Callable[..., Hop]


def resolve_location(current_url: str, location: str) -> str:
    """Resolve a Location header against the URL that returned it."""
    try:
        joined = httpx.URL(current_url).join(location)
    except httpx.InvalidURL as exc:
        raise InvalidTargetError(str(exc)) from exc
    return str(parse_target_url(joined))


def max_redirects_error(bound: int) -> str:
    return f"maximum number of redirects ({bound}) followed"


def chase_redirects(
    request: CheckRequest,
    *,
    user_agent: str = DEFAULT_USER_AGENT,
    fetch: Fetcher = fetch_once,
) -> CheckResponse:
    """
    Fetch ``request.url`` and follow 3xx responses up to ``request.redirects_to_follow`` times.

    Every hop is a full instrumented fetch with the same timeout. The response
    of the last hop attempted is returned; policy stops (missing Location,
    unusable Location, too many redirects) are recorded in its ``error``.
    Raises InvalidTargetError when the initial URL is unusable.
    """
    url = str(parse_target_url(request.url))
    bound = request.redirects_to_follow
    followed = 0

    while True:
        hop = fetch(
            url,
            timeout=request.timeout,
            verify_certs=request.verify_certs,
            user_agent=user_agent,
        )
        response = hop.response
        if not is_redirect(response.status):
            return response

        if not hop.location:
            response.error = NO_LOCATION_ERROR
            return response

        try:
            next_url = resolve_location(hop.url, hop.location)
        except InvalidTargetError as exc:
            response.error = f"invalid location to follow: {exc}"
            return response

        followed += 1
        if followed > bound:
            response.error = max_redirects_error(bound)
            return response

        logger.info("redirecting to %s (%d of %d)", next_url, followed, bound)
        url = next_url


__all__ = ["NO_LOCATION_ERROR", "Fetcher", "chase_redirects", "max_redirects_error", "resolve_location"]
