# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx transport wired to the per-hop deadline backend."""

from __future__ import annotations

import ssl

import httpcore
import httpx

# Five idle connections, dropped after one second.
PROBE_LIMITS = httpx.Limits(max_keepalive_connections=5, keepalive_expiry=1.0)
TLS_HANDSHAKE_TIMEOUT = 1.0


def build_ssl_context(verify_certs: bool) -> ssl.SSLContext:
    """TLS client context; peer verification follows ``verify_certs``."""
    return httpx.create_ssl_context(verify=verify_certs)


class ProbeTransport(httpx.HTTPTransport):
    """
    HTTPTransport whose connection pool dials through a custom network backend.

    httpx does not expose ``network_backend``, so the pool built by the parent
    is replaced with an equivalent one that uses ours. Request/response
    conversion and httpcore exception mapping are inherited unchanged.
    """

    def __init__(
        self,
        network_backend: httpcore.NetworkBackend,
        *,
        ssl_context: ssl.SSLContext | None = None,
        http2: bool = False,
        limits: httpx.Limits = PROBE_LIMITS,
    ):
        super().__init__(verify=ssl_context if ssl_context is not None else False, http2=http2, limits=limits)
        self._pool.close()
        self._pool = httpcore.ConnectionPool(
            ssl_context=ssl_context,
            max_connections=limits.max_connections,
            max_keepalive_connections=limits.max_keepalive_connections,
            keepalive_expiry=limits.keepalive_expiry,
            http1=True,
            http2=http2,
            network_backend=network_backend,
        )


def build_transport(
    network_backend: httpcore.NetworkBackend,
    *,
    secure: bool,
    verify_certs: bool,
) -> ProbeTransport:
    """
    Build the transport for one hop.

    Secure targets get their own TLS context and opt in to HTTP/2 (ALPN
    ``h2``/``http/1.1``); this needs the ``h2`` package and raises ImportError
    without it.
    """
    if not secure:
        return ProbeTransport(network_backend)
    return ProbeTransport(
        network_backend,
        ssl_context=build_ssl_context(verify_certs),
        http2=True,
    )


__all__ = ["PROBE_LIMITS", "TLS_HANDSHAKE_TIMEOUT", "ProbeTransport", "build_ssl_context", "build_transport"]
