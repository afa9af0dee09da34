# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Smoke checks run against a service once it reports ready."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..errors import error_category_to_reason
from ..http.client import HttpClient
from ..http.models import HttpRequest
from .containers import ContainerEngine


@dataclass(frozen=True)
class SmokeCheck:
    name: str
    passed: bool
    detail: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "passed": self.passed, "detail": self.detail}


@dataclass
class SmokeReport:
    checks: list[SmokeCheck] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(check.passed for check in self.checks)

    @property
    def failures(self) -> list[SmokeCheck]:
        return [check for check in self.checks if not check.passed]

    def add(self, check: SmokeCheck) -> SmokeCheck:
        self.checks.append(check)
        return check

    def to_dict(self) -> dict[str, Any]:
        return {"passed": self.passed, "checks": [check.to_dict() for check in self.checks]}


def check_body_marker(
    http_client: HttpClient,
    url: str,
    marker: str,
    *,
    connect_timeout: float = 2.0,
    read_timeout: float = 5.0,
) -> SmokeCheck:
    request = HttpRequest(
        url=url,
        timeout=read_timeout,
        connect_timeout=connect_timeout,
        max_duration=connect_timeout + read_timeout,
    )
    response = http_client.request(request)
    if not response.ok:
        reason = error_category_to_reason(response.error_category) or "request failed"
        return SmokeCheck("body_marker", False, f"{reason}: {response.error_message}")
    if marker in response.text:
        return SmokeCheck("body_marker", True, f"found {marker!r} (status {response.status_code})")
    return SmokeCheck("body_marker", False, f"{marker!r} not in response body (status {response.status_code})")


def check_container_running(engine: ContainerEngine, name: str) -> SmokeCheck:
    status = engine.container_status(name)
    if status is None:
        return SmokeCheck("container_running", False, f"container {name} not found")
    return SmokeCheck("container_running", status == "running", f"status={status}")


def check_published_port(engine: ContainerEngine, name: str, container_port: int, expected_host_port: int) -> SmokeCheck:
    host_port = engine.published_port(name, container_port)
    if host_port is None:
        return SmokeCheck("published_port", False, f"{container_port}/tcp is not published")
    return SmokeCheck(
        "published_port",
        host_port == expected_host_port,
        f"{container_port}/tcp -> {host_port}",
    )
