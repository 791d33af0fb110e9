# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP service exports."""

from .app import CheckRequestBody, create_app

__all__ = ["CheckRequestBody", "create_app"]
