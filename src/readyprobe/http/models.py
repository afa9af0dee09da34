# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP request/response data models used by readiness checks."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from ..errors import ErrorCategory

Headers = dict[str, str]

_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class ProbeTarget:
    """Address of the endpoint whose readiness is being checked."""

    host: str
    port: int
    path: str = "/"
    scheme: str = "http"

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("ProbeTarget.host must not be empty")
        if not 0 < self.port < 65536:
            raise ValueError(f"ProbeTarget.port out of range: {self.port}")
        if self.scheme not in _DEFAULT_PORTS:
            raise ValueError(f"Unsupported scheme: {self.scheme}")
        if not self.path.startswith("/"):
            object.__setattr__(self, "path", f"/{self.path}")

    @property
    def url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{self.scheme}://{host}:{self.port}{self.path}"

    @classmethod
    def from_url(cls, url: str) -> ProbeTarget:
        raw = str(url or "").strip()
        if "://" not in raw:
            raw = f"http://{raw}"
        parts = urlsplit(raw)
        scheme = parts.scheme.lower()
        if not parts.hostname:
            raise ValueError(f"URL has no host: {url!r}")
        path = parts.path or "/"
        if parts.query:
            path = f"{path}?{parts.query}"
        return cls(
            host=parts.hostname,
            port=parts.port if parts.port is not None else _DEFAULT_PORTS.get(scheme, 80),
            path=path,
            scheme=scheme,
        )

    def __str__(self) -> str:
        return self.url


@dataclass
class HttpRequest:
    """Normalized request representation consumed by HttpClient implementations."""

    url: str
    method: str = "GET"
    headers: Headers | None = None
    body: bytes | str | None = None
    # Response (read) and connect timeouts; None falls back to the client default.
    timeout: float | None = None
    connect_timeout: float | None = None
    allow_redirects: bool = True
    # A reachability check stops once the status line and headers arrive.
    read_body: bool = True
    # Overall cap on time spent streaming the body.
    max_duration: float | None = None


@dataclass
class HttpResponse:
    """Normalized HTTP response. ``ok`` means a response was received at all."""

    ok: bool
    status_code: int | None = None
    headers: Headers = field(default_factory=dict)
    text: str = ""
    content: bytes = b""
    url: str | None = None
    error_message: str | None = None
    error_type: str | None = None
    error_category: ErrorCategory = ErrorCategory.NONE
    meta: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> HttpResponse:
        """Helper to normalize dictionary-like responses (e.g., recorded fixtures)."""
        raw_headers: Any = data.get("headers") or {}
        headers: Headers = {}
        if isinstance(raw_headers, Mapping):
            for key, value in raw_headers.items():
                if key is None:
                    continue
                headers[str(key).lower()] = "" if value is None else str(value)

        raw_body = data.get("body")
        content: bytes = b""
        text: str = ""
        if isinstance(raw_body, (bytes, bytearray, memoryview)):
            content = bytes(raw_body)
            text = content.decode("utf-8", errors="replace")
        elif isinstance(raw_body, str):
            text = raw_body
            content = raw_body.encode("utf-8")

        try:
            category = ErrorCategory(data.get("error_category") or ErrorCategory.NONE)
        except ValueError:
            category = ErrorCategory.UNKNOWN_ERROR

        known = {"ok", "status_code", "headers", "body", "url", "error_message", "error_type", "error_category"}
        return cls(
            ok=bool(data.get("ok")),
            status_code=data.get("status_code"),
            headers=headers,
            text=text,
            content=content,
            url=data.get("url"),
            error_message=data.get("error_message"),
            error_type=data.get("error_type"),
            error_category=category,
            meta={k: v for k, v in data.items() if k not in known},
        )
