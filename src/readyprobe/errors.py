# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl
from enum import Enum
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from .poller.models import PollResult


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DNS_ERROR = "DNS_ERROR"
    SSL_ERROR = "SSL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NONE = "NONE"


class ReadyProbeError(Exception):
    """Base class for readyprobe errors."""


class DeadlineExceededError(ReadyProbeError):
    """Raised on request when a poll sequence ends without a successful check."""

    def __init__(self, result: PollResult):
        self.result = result
        super().__init__(
            f"{result.url} not ready after {result.attempts} attempt(s) in {result.elapsed:.2f}s"
            + (f": {result.last_error}" if result.last_error else "")
        )


class ContainerEngineError(ReadyProbeError):
    """A container-engine call failed."""


class PipelineError(ReadyProbeError):
    """A pipeline stage failed."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        self.message = message
        super().__init__(f"{stage}: {message}")


def _cause_chain(exc: BaseException, limit: int = 8) -> list[BaseException]:
    chain: list[BaseException] = []
    current = exc.__cause__ or exc.__context__
    while current is not None and len(chain) < limit:
        chain.append(current)
        current = current.__cause__ or current.__context__
    return chain


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map Python/httpx exceptions to ErrorCategory.
    """
    if isinstance(exc, httpx.TimeoutException):
        return ErrorCategory.TIMEOUT

    # httpx wraps resolver and TLS failures in ConnectError; look down the cause chain first.
    for cause in _cause_chain(exc):
        if isinstance(cause, (socket.gaierror, socket.herror)):
            return ErrorCategory.DNS_ERROR
        if isinstance(cause, (ssl.SSLError, ssl.CertificateError)):
            return ErrorCategory.SSL_ERROR

    if isinstance(exc, (httpx.ConnectError, httpx.RemoteProtocolError, httpx.NetworkError, httpx.ProxyError)):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, (ssl.SSLError, ssl.CertificateError)):
        return ErrorCategory.SSL_ERROR

    if isinstance(exc, (socket.gaierror, socket.herror)):
        return ErrorCategory.DNS_ERROR

    if isinstance(exc, socket.timeout):
        return ErrorCategory.TIMEOUT

    if isinstance(exc, (ConnectionError, ConnectionRefusedError, ConnectionResetError)):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


def error_category_to_reason(category: ErrorCategory | None) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "Timed out waiting for the service",
        ErrorCategory.CONNECTION_ERROR: "Connection refused or reset",
        ErrorCategory.DNS_ERROR: "Host name could not be resolved",
        ErrorCategory.SSL_ERROR: "TLS/certificate issue",
        ErrorCategory.UNKNOWN_ERROR: "Check failed with an unexpected error",
        ErrorCategory.NONE: "",
        None: "",
    }
    return mapping.get(category, "Check failed")
