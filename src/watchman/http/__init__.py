# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Instrumented HTTP fetch exports."""

from .backend import Deadline, DeadlineBackend, DeadlineStream, Resolver, resolve_host
from .fetch import Hop, fetch_once, is_redirect, parse_target_url
from .phases import compute_phases
from .timing import HopTimeline
from .transport import ProbeTransport, build_ssl_context, build_transport

__all__ = [
    "Deadline",
    "DeadlineBackend",
    "DeadlineStream",
    "Hop",
    "HopTimeline",
    "ProbeTransport",
    "Resolver",
    "build_ssl_context",
    "build_transport",
    "compute_phases",
    "fetch_once",
    "is_redirect",
    "parse_target_url",
    "resolve_host",
]
