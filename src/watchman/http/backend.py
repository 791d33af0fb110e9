# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
httpcore network backend that times and bounds one hop.

The backend resolves hostnames itself so that DNS is measured apart from the
TCP connect, tries each resolved address in order, and clamps every connect,
TLS handshake, read and write to whatever is left of the hop's deadline. Once
the deadline has passed the next network operation fails with an httpcore
timeout, which httpx surfaces as ``httpx.TimeoutException``.
"""

from __future__ import annotations

import ipaddress
import socket
import ssl
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

import httpcore

from ..utils.duration import format_duration
from .timing import HopTimeline

Resolver = Callable[[str, int], list[str]]


def start_lookup(
    resolver: Resolver,
    host: str,
    port: int,
    on_start: Callable[[], None] | None = None,
) -> Future[list[str]]:
    """
    Run ``resolver(host, port)`` on a dedicated daemon thread.

    getaddrinfo() cannot be interrupted, so a lookup that outlives its hop is
    abandoned: the caller stops waiting on the future and the thread finishes
    on its own. Each lookup gets its own thread, so a hung lookup never delays
    another hop's. ``on_start`` runs on that thread just before the resolver.
    """
    future: Future[list[str]] = Future()

    def run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        if on_start is not None:
            on_start()
        try:
            result = resolver(host, port)
        except Exception as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)

    threading.Thread(target=run, name=f"watchman-dns-{host}", daemon=True).start()
    return future


def resolve_host(host: str, port: int) -> list[str]:
    """Resolve a hostname to its TCP addresses, in resolver order, without duplicates."""
    addresses: list[str] = []
    for _family, _type, _proto, _canon, sockaddr in socket.getaddrinfo(host, port, type=socket.SOCK_STREAM):
        address = str(sockaddr[0])
        if address not in addresses:
            addresses.append(address)
    return addresses


def is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return False
    return True


class Deadline:
    """Absolute expiry for one hop."""

    def __init__(self, timeout: float, clock: Callable[[], float] = time.monotonic):
        self.timeout = timeout
        self._clock = clock
        self.expires_at = clock() + timeout

    def remaining(self) -> float:
        return self.expires_at - self._clock()

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def clamp(self, timeout: float | None, exc_class: type[Exception] = httpcore.ReadTimeout) -> float:
        """Return ``timeout`` capped to the time left, raising ``exc_class`` when none is left."""
        remaining = self.remaining()
        if remaining <= 0:
            raise exc_class(f"deadline of {format_duration(self.timeout)} exceeded")
        if timeout is None:
            return remaining
        return min(timeout, remaining)


class DeadlineStream(httpcore.NetworkStream):
    """NetworkStream wrapper applying the hop deadline and recording TLS events."""

    def __init__(
        self,
        stream: httpcore.NetworkStream,
        deadline: Deadline,
        timeline: HopTimeline,
        tls_timeout: float,
    ):
        self._stream = stream
        self._deadline = deadline
        self._timeline = timeline
        self._tls_timeout = tls_timeout

    def read(self, max_bytes: int, timeout: float | None = None) -> bytes:
        return self._stream.read(max_bytes, self._deadline.clamp(timeout, httpcore.ReadTimeout))

    def write(self, buffer: bytes, timeout: float | None = None) -> None:
        self._stream.write(buffer, self._deadline.clamp(timeout, httpcore.WriteTimeout))

    def close(self) -> None:
        self._stream.close()

    def start_tls(
        self,
        ssl_context: ssl.SSLContext,
        server_hostname: str | None = None,
        timeout: float | None = None,
    ) -> httpcore.NetworkStream:
        limit = self._tls_timeout if timeout is None else min(timeout, self._tls_timeout)
        limit = self._deadline.clamp(limit, httpcore.ConnectTimeout)
        self._timeline.record_tls_start()
        try:
            stream = self._stream.start_tls(ssl_context, server_hostname=server_hostname, timeout=limit)
        finally:
            self._timeline.record_tls_done()
        return DeadlineStream(stream, self._deadline, self._timeline, self._tls_timeout)

    def get_extra_info(self, info: str) -> Any:
        return self._stream.get_extra_info(info)


class DeadlineBackend(httpcore.NetworkBackend):
    """Network backend for a single hop; wraps another backend (the socket backend by default)."""

    def __init__(
        self,
        timeline: HopTimeline,
        deadline: Deadline,
        *,
        inner: httpcore.NetworkBackend | None = None,
        resolver: Resolver | None = None,
        tls_timeout: float = 1.0,
    ):
        self.timeline = timeline
        self.deadline = deadline
        self._inner = inner or httpcore.SyncBackend()
        self._resolver = resolver or resolve_host
        self._tls_timeout = tls_timeout

    def _resolve(self, host: str, port: int) -> list[str]:
        if is_ip_literal(host):
            return [host.strip("[]")]

        limit = self.deadline.clamp(None, httpcore.ConnectTimeout)
        future = start_lookup(self._resolver, host, port, on_start=self.timeline.record_dns_start)
        try:
            addresses = future.result(timeout=limit)
        except FutureTimeoutError as exc:
            future.cancel()
            raise httpcore.ConnectTimeout(
                f"lookup {host}: deadline of {format_duration(self.deadline.timeout)} exceeded"
            ) from exc
        except (OSError, UnicodeError) as exc:
            raise httpcore.ConnectError(f"lookup {host}: {exc}") from exc
        finally:
            self.timeline.record_dns_done()

        if not addresses:
            raise httpcore.ConnectError(f"lookup {host}: no addresses found")
        return addresses

    def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: float | None = None,
        local_address: str | None = None,
        socket_options: Iterable[httpcore.SOCKET_OPTION] | None = None,
    ) -> httpcore.NetworkStream:
        addresses = self._resolve(host, port)

        last_error: Exception | None = None
        for address in addresses:
            limit = self.deadline.clamp(timeout, httpcore.ConnectTimeout)
            self.timeline.record_connect_start()
            try:
                stream = self._inner.connect_tcp(
                    address,
                    port,
                    timeout=limit,
                    local_address=local_address,
                    socket_options=socket_options,
                )
            except (httpcore.ConnectError, httpcore.ConnectTimeout) as exc:
                self.timeline.record_connect_done(exc)
                last_error = exc
                continue
            self.timeline.record_connect_done()
            return DeadlineStream(stream, self.deadline, self.timeline, self._tls_timeout)

        if last_error is None:
            raise httpcore.ConnectError(f"dial {host}: no addresses to try")
        raise last_error

    def connect_unix_socket(
        self,
        path: str,
        timeout: float | None = None,
        socket_options: Iterable[httpcore.SOCKET_OPTION] | None = None,
    ) -> httpcore.NetworkStream:  # pragma: no cover - probes only dial TCP
        raise httpcore.UnsupportedProtocol("unix sockets are not supported by probes")

    def sleep(self, seconds: float) -> None:
        self._inner.sleep(seconds)


__all__ = [
    "Deadline",
    "DeadlineBackend",
    "DeadlineStream",
    "Resolver",
    "is_ip_literal",
    "resolve_host",
    "start_lookup",
]
