# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe request/response models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any

DURATION_FIELDS: tuple[str, ...] = (
    "dns_lookup",
    "tcp_connection",
    "tls_handshake",
    "server_processing",
    "content_transfer",
    "name_lookup",
    "connect",
    "pre_transfer",
    "start_transfer",
    "total",
)


@dataclass(frozen=True)
class CheckRequest:
    """Normalized probe request; timeout and redirect bound are already resolved."""

    url: str
    timeout: float
    redirects_to_follow: int
    verify_certs: bool = True


@dataclass(frozen=True)
class PhaseDurations:
    """Per-phase durations of one hop, in nanoseconds."""

    dns_lookup: int = 0
    tcp_connection: int = 0
    tls_handshake: int = 0
    server_processing: int = 0
    content_transfer: int = 0
    name_lookup: int = 0
    connect: int = 0
    pre_transfer: int = 0
    start_transfer: int = 0
    total: int = 0


@dataclass
class CheckResponse:
    """Outcome of the last hop attempted; durations are integer nanoseconds."""

    status: int = 0
    error: str = ""
    dns_lookup: int = 0
    tcp_connection: int = 0
    tls_handshake: int = 0
    server_processing: int = 0
    content_transfer: int = 0
    name_lookup: int = 0
    connect: int = 0
    pre_transfer: int = 0
    start_transfer: int = 0
    total: int = 0

    @property
    def ok(self) -> bool:
        return not self.error

    def apply_phases(self, phases: PhaseDurations) -> None:
        for name in DURATION_FIELDS:
            setattr(self, name, getattr(phases, name))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CheckResponse:
        """Rebuild a response from its JSON form; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known or value is None:
                continue
            if key == "error":
                values[key] = str(value)
            else:
                values[key] = int(value)
        return cls(**values)


__all__ = ["DURATION_FIELDS", "CheckRequest", "CheckResponse", "PhaseDurations"]
