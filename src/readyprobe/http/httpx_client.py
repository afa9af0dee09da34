# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx-backed HttpClient implementation."""

from __future__ import annotations

import logging
import time

import httpx

from ..config import HttpSettings, load_http_settings
from ..errors import categorize_exception
from .client import HttpClient
from .models import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

MIN_PHASE_TIMEOUT = 0.01


def _bounded(value: float | None, default: float) -> float:
    if value is None:
        value = default
    return max(value, MIN_PHASE_TIMEOUT)


def build_timeout(read: float | None, connect: float | None, default: float = HttpSettings.timeout) -> httpx.Timeout:
    """Per-request timeout; every phase is bounded, missing values take ``default``."""
    read_value = _bounded(read, default)
    return httpx.Timeout(read_value, connect=_bounded(connect, default))


class HttpxClient(HttpClient):
    """Synchronous httpx client wrapper."""

    def __init__(self, settings: HttpSettings | None = None, client: httpx.Client | None = None):
        self.settings = settings or load_http_settings()
        self._client = client or httpx.Client(
            follow_redirects=self.settings.allow_redirects,
            timeout=self.settings.timeout,
            verify=self.settings.verify_ssl,
        )

    def request(self, request: HttpRequest) -> HttpResponse:
        headers = dict(request.headers or {})
        headers.setdefault("User-Agent", self.settings.user_agent)
        max_body_bytes = self.settings.max_body_bytes
        started = time.monotonic()

        try:
            with self._client.stream(
                request.method,
                request.url,
                headers=headers,
                content=request.body,
                timeout=build_timeout(request.timeout, request.connect_timeout, self.settings.timeout),
                follow_redirects=request.allow_redirects,
            ) as resp:
                content = bytearray()
                truncated = False
                timed_out = False
                if request.read_body:
                    # httpx read timeouts apply per chunk; max_duration caps the whole body.
                    for chunk in resp.iter_bytes():
                        if not chunk:
                            continue
                        remaining = max_body_bytes - len(content)
                        if len(chunk) > remaining:
                            content.extend(chunk[:remaining])
                            truncated = True
                            break
                        content.extend(chunk)
                        if request.max_duration is not None and time.monotonic() - started >= request.max_duration:
                            truncated = timed_out = True
                            break

                encoding = resp.encoding or "utf-8"
                try:
                    text = bytes(content).decode(encoding, errors="replace")
                except LookupError:
                    text = bytes(content).decode("utf-8", errors="replace")

            return HttpResponse(
                ok=True,
                status_code=resp.status_code,
                headers=dict(resp.headers),
                text=text,
                content=bytes(content),
                url=str(resp.url),
                meta={
                    "body_read": request.read_body,
                    "body_truncated": truncated,
                    "body_timed_out": timed_out,
                    "body_bytes_read": len(content),
                },
            )
        except httpx.HTTPError as exc:
            logger.debug("request to %s failed: %s", request.url, exc)
            return HttpResponse(
                ok=False,
                url=request.url,
                error_message=str(exc) or type(exc).__name__,
                error_type=type(exc).__name__,
                error_category=categorize_exception(exc),
            )

    def close(self) -> None:
        self._client.close()
