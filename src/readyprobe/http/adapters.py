# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""In-process HttpClient implementations for tests and dry runs."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from ..errors import ErrorCategory
from .client import HttpClient
from .models import HttpRequest, HttpResponse


def refused(url: str | None = None) -> HttpResponse:
    """A transport failure shaped like a refused connection."""
    return HttpResponse(
        ok=False,
        url=url,
        error_message="Connection refused",
        error_type="ConnectError",
        error_category=ErrorCategory.CONNECTION_ERROR,
    )


class StubHttpClient(HttpClient):
    """Deterministic, programmable HttpClient for tests."""

    def __init__(self, responses: dict[str, HttpResponse] | None = None):
        self._responses = responses or {}
        self.requests: list[HttpRequest] = []

    def add(self, url: str, response: HttpResponse) -> None:
        self._responses[url] = response

    def request(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        if request.url in self._responses:
            return self._responses[request.url]
        return refused(request.url)

    def close(self) -> None:
        return None


class SequenceHttpClient(HttpClient):
    """
    Replays responses in order, repeating the last one once exhausted.

    ``on_request`` is invoked before each response is returned; tests use it to
    advance a fake clock by the simulated request latency.
    """

    def __init__(
        self,
        responses: Iterable[HttpResponse],
        on_request: Callable[[HttpRequest], None] | None = None,
    ):
        self._responses = list(responses)
        if not self._responses:
            raise ValueError("SequenceHttpClient needs at least one response")
        self._on_request = on_request
        self.requests: list[HttpRequest] = []
        self.closed = False

    @property
    def calls(self) -> int:
        return len(self.requests)

    def request(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        if self._on_request is not None:
            self._on_request(request)
        return self._responses[min(self.calls - 1, len(self._responses) - 1)]

    def close(self) -> None:
        self.closed = True
