# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Duration strings in the ``time.ParseDuration`` dialect.

Probe requests and the ``TIMEOUT`` environment variable carry timeouts such as
``"50ms"``, ``"1.5s"`` or ``"1m30s"``: a signed sequence of decimal numbers, each
with a unit suffix. ``"0"`` is the only unit-less value accepted.
"""

from __future__ import annotations

import re

_UNIT_SECONDS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # micro sign
    "μs": 1e-6,  # greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT_RE = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """
    Parse a duration string and return it in seconds.

    Raises ValueError for empty input, missing units or unknown units.
    """
    raw = str(text or "").strip()
    if not raw:
        raise ValueError("invalid duration \"\"")

    sign = 1.0
    body = raw
    if body[0] in "+-":
        sign = -1.0 if body[0] == "-" else 1.0
        body = body[1:]

    if body == "0":
        return 0.0
    if not body:
        raise ValueError(f"invalid duration {raw!r}")

    total = 0.0
    pos = 0
    while pos < len(body):
        match = _COMPONENT_RE.match(body, pos)
        if not match:
            raise ValueError(f"invalid duration {raw!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    return sign * total


def _trim(value: float) -> str:
    text = f"{value:.9f}".rstrip("0").rstrip(".")
    return text or "0"


def format_duration(seconds: float) -> str:
    """Render seconds as a compact duration string (``100ms``, ``1.5s``, ``2m0s``)."""
    if seconds == 0:
        return "0s"
    sign = "-" if seconds < 0 else ""
    value = abs(seconds)

    if value < 1e-6:
        return f"{sign}{round(value * 1e9)}ns"
    if value < 1e-3:
        return f"{sign}{_trim(value * 1e6)}µs"
    if value < 1:
        return f"{sign}{_trim(value * 1e3)}ms"

    hours, rest = divmod(value, 3600)
    minutes, secs = divmod(rest, 60)
    out = sign
    if hours:
        out += f"{int(hours)}h"
    if hours or minutes:
        out += f"{int(minutes)}m"
    return f"{out}{_trim(round(secs, 9))}s"


__all__ = ["format_duration", "parse_duration"]
