# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP client exports."""

from .adapters import SequenceHttpClient, StubHttpClient, refused
from .client import HttpClient, create_default_http_client
from .httpx_client import HttpxClient, build_timeout
from .models import Headers, HttpRequest, HttpResponse, ProbeTarget

__all__ = [
    "Headers",
    "HttpClient",
    "HttpxClient",
    "HttpRequest",
    "HttpResponse",
    "ProbeTarget",
    "SequenceHttpClient",
    "StubHttpClient",
    "build_timeout",
    "create_default_http_client",
    "refused",
]
