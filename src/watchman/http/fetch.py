# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Single instrumented GET: one hop of a probe."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpcore
import httpx

from ..config import DEFAULT_USER_AGENT
from ..errors import InvalidTargetError, categorize_exception
from ..models.check import CheckResponse
from .backend import Deadline, DeadlineBackend, Resolver
from .phases import compute_phases
from .timing import HopTimeline
from .transport import TLS_HANDSHAKE_TIMEOUT, build_transport

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES = ("http", "https")


@dataclass
class Hop:
    """Result of one fetch: the URL requested, its response and any Location header."""

    url: str
    response: CheckResponse
    location: str | None = None


def is_redirect(status: int) -> bool:
    return 299 < status < 400


def parse_target_url(url: str | httpx.URL) -> httpx.URL:
    """Validate an absolute http(s) URL, raising InvalidTargetError otherwise."""
    raw = str(url or "").strip()
    if not raw:
        raise InvalidTargetError("missing target url")
    try:
        parsed = httpx.URL(raw)
    except httpx.InvalidURL as exc:
        raise InvalidTargetError(f"invalid target url {raw!r}: {exc}") from exc
    if not parsed.scheme:
        raise InvalidTargetError(f"invalid target url {raw!r}: not an absolute url")
    if parsed.scheme not in SUPPORTED_SCHEMES:
        raise InvalidTargetError(f"unsupported protocol scheme {parsed.scheme!r}")
    if not parsed.host:
        raise InvalidTargetError(f"invalid target url {raw!r}: missing host")
    return parsed


def fetch_once(
    url: str,
    *,
    timeout: float,
    verify_certs: bool = True,
    user_agent: str = DEFAULT_USER_AGENT,
    network_backend: httpcore.NetworkBackend | None = None,
    resolver: Resolver | None = None,
) -> Hop:
    """
    Issue one GET against ``url`` within ``timeout`` seconds and time its phases.

    Redirects are never followed here: a 3xx comes back with its Location and
    an undrained body. Network failures, including an exhausted deadline, are
    reported through ``response.error`` with status 0 and no timings. A
    malformed URL raises InvalidTargetError before anything is sent.
    """
    target = parse_target_url(url)
    scheme = target.scheme
    secure = scheme == "https"
    hop = Hop(url=str(target), response=CheckResponse())
    response = hop.response

    timeline = HopTimeline()
    backend = DeadlineBackend(
        timeline,
        Deadline(timeout),
        inner=network_backend,
        resolver=resolver,
        tls_timeout=TLS_HANDSHAKE_TIMEOUT,
    )
    try:
        transport = build_transport(backend, secure=secure, verify_certs=verify_certs)
    except (ImportError, OSError, ValueError) as exc:
        response.error = f"transport setup failed: {exc}"
        logger.warning("Cannot build transport for %s: %s", hop.url, exc)
        return hop

    extensions: dict[str, object] = {"trace": timeline.trace}
    if secure:
        extensions["sni_hostname"] = target.raw_host.decode("ascii")

    # The clock starts once the transport is built; TLS context setup is not network time.
    backend.deadline = Deadline(timeout)

    with httpx.Client(
        transport=transport,
        follow_redirects=False,
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": user_agent},
        trust_env=False,
    ) as client:
        try:
            with client.stream("GET", target, extensions=extensions) as resp:
                status = resp.status_code
                if is_redirect(status):
                    hop.location = resp.headers.get("location")
                else:
                    for _ in resp.iter_raw():
                        pass
            finished_at = timeline.now()
        except httpx.HTTPError as exc:
            response.error = str(exc) or timeline.connect_error or type(exc).__name__
            logger.info(
                "Probe of %s failed: %s (%s)",
                hop.url,
                response.error,
                categorize_exception(exc).value,
            )
            return hop

    response.status = status
    response.apply_phases(compute_phases(timeline, scheme, finished_at))
    logger.debug("Fetched %s: status=%d total=%dns", hop.url, status, response.total)
    return hop


__all__ = ["Hop", "SUPPORTED_SCHEMES", "fetch_once", "is_redirect", "parse_target_url"]
