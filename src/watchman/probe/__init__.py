# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe orchestration: request normalization and the redirect walk."""

from .normalize import normalize_check_request
from .redirects import NO_LOCATION_ERROR, chase_redirects, resolve_location

__all__ = ["NO_LOCATION_ERROR", "chase_redirects", "normalize_check_request", "resolve_location"]
