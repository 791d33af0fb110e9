# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Per-hop timestamp capture.

A HopTimeline is filled in by two sources while a request is in flight:

- the deadline-bound network backend records DNS, TCP connect and TLS events;
- the httpcore ``trace`` request extension reports when the request starts
  being written (connection acquired) and when response headers arrive.

Timestamps are ``time.perf_counter_ns()`` instants. An event that never fires
leaves its field as None.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

_GOT_CONN_EVENTS = frozenset(
    {
        "http11.send_request_headers.started",
        "http2.send_request_headers.started",
    }
)
_FIRST_BYTE_EVENTS = frozenset(
    {
        "http11.receive_response_headers.complete",
        "http2.receive_response_headers.complete",
    }
)


@dataclass
class HopTimeline:
    dns_start: int | None = None  # t0
    dns_done: int | None = None  # t1
    connect_done: int | None = None  # t2
    got_conn: int | None = None  # t3
    first_byte: int | None = None  # t4
    tls_start: int | None = None  # t5
    tls_done: int | None = None  # t6
    connect_error: str | None = None
    clock: Callable[[], int] = time.perf_counter_ns

    def now(self) -> int:
        return self.clock()

    def record_dns_start(self) -> None:
        self.dns_start = self.now()

    def record_dns_done(self) -> None:
        self.dns_done = self.now()

    def record_connect_start(self) -> None:
        # Literal addresses skip DNS; connect start stands in for t1.
        if self.dns_done is None:
            self.dns_done = self.now()

    def record_connect_done(self, error: BaseException | str | None = None) -> None:
        if error is not None:
            self.connect_error = str(error) or type(error).__name__
        self.connect_done = self.now()

    def record_got_conn(self) -> None:
        self.got_conn = self.now()

    def record_first_byte(self) -> None:
        if self.first_byte is None:
            self.first_byte = self.now()

    def record_tls_start(self) -> None:
        self.tls_start = self.now()

    def record_tls_done(self) -> None:
        self.tls_done = self.now()

    def trace(self, event_name: str, info: dict[str, Any]) -> None:  # noqa: ARG002
        """httpcore ``trace`` extension callback."""
        if event_name in _GOT_CONN_EVENTS:
            self.record_got_conn()
        elif event_name in _FIRST_BYTE_EVENTS:
            self.record_first_byte()


__all__ = ["HopTimeline"]
