# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Turn a raw probe request into a CheckRequest with defaults applied."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..config import ProbeSettings
from ..errors import InvalidRequestError, InvalidTargetError, InvalidTimeoutError
from ..http.fetch import parse_target_url
from ..models.check import CheckRequest
from ..utils.duration import parse_duration


def _effective_timeout(raw: Any, default: float) -> float:
    if raw is None or raw == "":
        return default
    if not isinstance(raw, str):
        raise InvalidTimeoutError("bad timeout")
    try:
        timeout = parse_duration(raw)
    except ValueError as exc:
        raise InvalidTimeoutError("bad timeout") from exc
    if timeout < 0:
        raise InvalidTimeoutError("bad timeout")
    return timeout or default


def _effective_redirects(raw: Any, default: int) -> int:
    if raw is None:
        return default
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise InvalidRequestError("redirects_to_follow must be an integer")
    if raw < 0:
        raise InvalidRequestError("redirects_to_follow must not be negative")
    return raw or default


def normalize_check_request(payload: Mapping[str, Any], settings: ProbeSettings) -> CheckRequest:
    """
    Validate a decoded request body and resolve its defaults.

    An absent, empty or zero ``timeout`` and an absent or zero
    ``redirects_to_follow`` fall back to the process defaults in ``settings``.
    ``verify_certs`` defaults to True.
    """
    url = payload.get("url")
    if not isinstance(url, str) or not url.strip():
        raise InvalidTargetError("missing target url")
    parse_target_url(url)

    verify_certs = payload.get("verify_certs")
    if verify_certs is None:
        verify_certs = True
    elif not isinstance(verify_certs, bool):
        raise InvalidRequestError("verify_certs must be a boolean")

    return CheckRequest(
        url=url.strip(),
        timeout=_effective_timeout(payload.get("timeout"), settings.timeout),
        redirects_to_follow=_effective_redirects(payload.get("redirects_to_follow"), settings.max_redirects),
        verify_certs=verify_certs,
    )


__all__ = ["normalize_check_request"]
