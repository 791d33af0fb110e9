# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclass exports for Watchman."""

from .check import DURATION_FIELDS, CheckRequest, CheckResponse, PhaseDurations

__all__ = [
    "DURATION_FIELDS",
    "CheckRequest",
    "CheckResponse",
    "PhaseDurations",
]
