# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Derive per-phase durations from a hop's raw timestamps."""

from __future__ import annotations

from ..models.check import PhaseDurations
from .timing import HopTimeline


def _since(later: int | None, earlier: int | None) -> int:
    if later is None or earlier is None:
        return 0
    return later - earlier


def compute_phases(timeline: HopTimeline, scheme: str, finished_at: int) -> PhaseDurations:
    """
    Map timestamps t0..t6 plus the post-transfer instant t7 to phase durations.

    Plain HTTP has no handshake, so its TCP phase runs until the connection is
    handed to the request and ``tls_handshake`` / ``pre_transfer`` stay 0.
    """
    t1 = timeline.dns_done
    t0 = timeline.dns_start if timeline.dns_start is not None else t1
    t2 = timeline.connect_done
    t3 = timeline.got_conn
    t4 = timeline.first_byte
    t5 = timeline.tls_start
    t6 = timeline.tls_done
    t7 = finished_at

    if scheme == "https":
        return PhaseDurations(
            dns_lookup=_since(t1, t0),
            tcp_connection=_since(t2, t1),
            tls_handshake=_since(t6, t5),
            server_processing=_since(t4, t3),
            content_transfer=_since(t7, t4),
            name_lookup=_since(t1, t0),
            connect=_since(t2, t0),
            pre_transfer=_since(t3, t0),
            start_transfer=_since(t4, t0),
            total=_since(t7, t0),
        )
    if scheme == "http":
        return PhaseDurations(
            dns_lookup=_since(t1, t0),
            tcp_connection=_since(t3, t1),
            server_processing=_since(t4, t3),
            content_transfer=_since(t7, t4),
            name_lookup=_since(t1, t0),
            connect=_since(t2, t0),
            start_transfer=_since(t4, t0),
            total=_since(t7, t0),
        )
    return PhaseDurations()


__all__ = ["compute_phases"]
