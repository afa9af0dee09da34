# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for readyprobe."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"readyprobe/{__version__}"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _port_env(name: str, default: int) -> int:
    value = _int_env(name, default)
    return value if 0 < value < 65536 else default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class HttpSettings:
    """HTTP client defaults for readiness checks and smoke requests."""

    timeout: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    allow_redirects: bool = True
    verify_ssl: bool = True
    max_body_bytes: int = 1024 * 1024

    @classmethod
    def from_env(cls) -> "HttpSettings":
        """Create settings from environment variables (evaluated at call time)."""
        max_body_bytes = _int_env("READYPROBE_HTTP_MAX_BODY_BYTES", cls.max_body_bytes)
        if max_body_bytes <= 0:
            max_body_bytes = cls.max_body_bytes
        timeout = _float_env("READYPROBE_HTTP_TIMEOUT", cls.timeout)
        if timeout <= 0:
            timeout = cls.timeout
        return cls(
            timeout=timeout,
            user_agent=os.getenv("READYPROBE_USER_AGENT", cls.user_agent),
            allow_redirects=_bool_env("READYPROBE_HTTP_REDIRECTS", cls.allow_redirects),
            verify_ssl=_bool_env("READYPROBE_HTTP_VERIFY_SSL", cls.verify_ssl),
            max_body_bytes=max_body_bytes,
        )


@dataclass
class PollSettings:
    """Timing defaults for the readiness poller."""

    timeout: float = 30.0
    interval: float = 2.0
    connect_timeout: float = 2.0
    read_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> "PollSettings":
        timeout = _float_env("READYPROBE_POLL_TIMEOUT", cls.timeout)
        if timeout <= 0:
            timeout = cls.timeout
        return cls(
            timeout=timeout,
            interval=max(0.0, _float_env("READYPROBE_POLL_INTERVAL", cls.interval)),
            connect_timeout=max(0.0, _float_env("READYPROBE_CONNECT_TIMEOUT", cls.connect_timeout)),
            read_timeout=max(0.0, _float_env("READYPROBE_READ_TIMEOUT", cls.read_timeout)),
        )


@dataclass(frozen=True)
class AppSettings:
    """Immutable settings for the sample application pipeline."""

    image: str = "sampleapp"
    container: str = "samplerunning"
    host: str = "localhost"
    port: int = 5050
    container_port: int = 5050
    path: str = "/"
    build_context: str = "."
    marker: str = ""
    keep_on_failure: bool = False
    cleanup_on_success: bool = False

    def __post_init__(self) -> None:
        for name in ("port", "container_port"):
            value = getattr(self, name)
            if not 0 < value < 65536:
                raise ValueError(f"{name} out of range 1-65535: {value}")

    @property
    def url(self) -> str:
        path = self.path if self.path.startswith("/") else f"/{self.path}"
        return f"http://{self.host}:{self.port}{path}"

    @classmethod
    def from_env(cls) -> "AppSettings":
        port = _port_env("READYPROBE_PORT", cls.port)
        return cls(
            image=os.getenv("READYPROBE_IMAGE", cls.image),
            container=os.getenv("READYPROBE_CONTAINER", cls.container),
            host=os.getenv("READYPROBE_HOST", cls.host),
            port=port,
            container_port=_port_env("READYPROBE_CONTAINER_PORT", cls.container_port),
            path=os.getenv("READYPROBE_PATH", cls.path),
            build_context=os.getenv("READYPROBE_BUILD_CONTEXT", cls.build_context),
            marker=os.getenv("READYPROBE_MARKER", cls.marker),
            keep_on_failure=_bool_env("READYPROBE_KEEP_ON_FAILURE", cls.keep_on_failure),
            cleanup_on_success=_bool_env("READYPROBE_CLEANUP_ON_SUCCESS", cls.cleanup_on_success),
        )


def load_http_settings() -> HttpSettings:
    """Load HTTP settings from environment with sensible defaults."""
    return HttpSettings.from_env()


def load_poll_settings() -> PollSettings:
    return PollSettings.from_env()


def load_app_settings() -> AppSettings:
    return AppSettings.from_env()
