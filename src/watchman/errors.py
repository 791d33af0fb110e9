# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl
from enum import Enum


class WatchmanError(Exception):
    """Base class for errors raised by Watchman itself."""


class ConfigError(WatchmanError):
    """Invalid process configuration; startup must abort."""


class InvalidRequestError(WatchmanError, ValueError):
    """A probe request that cannot be attempted (client mistake, not a network condition)."""


class InvalidTargetError(InvalidRequestError):
    """Target URL is malformed or uses an unsupported scheme."""


class InvalidTimeoutError(InvalidRequestError):
    """Timeout string could not be parsed or is negative."""


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    SSL_ERROR = "SSL_ERROR"
    DNS_ERROR = "DNS_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NONE = "NONE"


def _causes(exc: BaseException):
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def categorize_exception(exc: BaseException | None) -> ErrorCategory:
    """
    Map httpx/httpcore/socket exceptions to an ErrorCategory.

    The exception chain is walked so that an ``httpx.ConnectError`` raised from
    an ``ssl.SSLError`` or ``socket.gaierror`` is reported by its root cause.
    """
    import httpx

    if exc is None:
        return ErrorCategory.NONE

    if isinstance(exc, httpx.TimeoutException):
        return ErrorCategory.TIMEOUT

    for cause in _causes(exc):
        if isinstance(cause, (ssl.SSLError, ssl.CertificateError)):
            return ErrorCategory.SSL_ERROR
        if isinstance(cause, (socket.gaierror, socket.herror)):
            return ErrorCategory.DNS_ERROR

    if isinstance(exc, (httpx.RemoteProtocolError, httpx.LocalProtocolError)):
        return ErrorCategory.PROTOCOL_ERROR

    if isinstance(exc, (httpx.ConnectError, httpx.NetworkError, ConnectionError)):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


__all__ = [
    "ConfigError",
    "ErrorCategory",
    "InvalidRequestError",
    "InvalidTargetError",
    "InvalidTimeoutError",
    "WatchmanError",
    "categorize_exception",
]
