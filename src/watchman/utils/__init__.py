# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Utility helpers."""

from .duration import format_duration, parse_duration

__all__ = ["format_duration", "parse_duration"]
