# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import socket
import ssl

import httpx
import pytest

from readyprobe import config
from readyprobe.config import DEFAULT_USER_AGENT, AppSettings, PollSettings
from readyprobe.errors import (
    ErrorCategory,
    PipelineError,
    ReadyProbeError,
    categorize_exception,
    error_category_to_reason,
)
from readyprobe.poller.models import PollPolicy


def test_poll_settings_env_overrides(monkeypatch):
    monkeypatch.setenv("READYPROBE_POLL_TIMEOUT", "12.5")
    monkeypatch.setenv("READYPROBE_POLL_INTERVAL", "0")
    monkeypatch.setenv("READYPROBE_CONNECT_TIMEOUT", "0.5")
    monkeypatch.setenv("READYPROBE_READ_TIMEOUT", "3")

    settings = config.load_poll_settings()
    assert settings.timeout == 12.5
    assert settings.interval == 0.0
    assert settings.connect_timeout == 0.5
    assert settings.read_timeout == 3.0

    policy = PollPolicy.from_settings(settings)
    assert policy.timeout == 12.5
    assert policy.max_overshoot == 3.5


def test_poll_settings_invalid_env_fall_back(monkeypatch):
    monkeypatch.setenv("READYPROBE_POLL_TIMEOUT", "-5")
    monkeypatch.setenv("READYPROBE_POLL_INTERVAL", "soon")
    monkeypatch.setenv("READYPROBE_CONNECT_TIMEOUT", "-1")

    settings = config.load_poll_settings()
    assert settings.timeout == PollSettings.timeout
    assert settings.interval == PollSettings.interval
    assert settings.connect_timeout == 0.0
    # Clamped values always form a valid policy.
    PollPolicy.from_settings(settings)


def test_http_settings_env_overrides(monkeypatch):
    monkeypatch.setenv("READYPROBE_USER_AGENT", "CustomAgent/1.0")
    monkeypatch.setenv("READYPROBE_HTTP_REDIRECTS", "false")
    monkeypatch.setenv("READYPROBE_HTTP_VERIFY_SSL", "0")
    monkeypatch.setenv("READYPROBE_HTTP_MAX_BODY_BYTES", "-1")

    settings = config.load_http_settings()
    assert settings.user_agent == "CustomAgent/1.0"
    assert settings.allow_redirects is False
    assert settings.verify_ssl is False
    assert settings.max_body_bytes == config.HttpSettings.max_body_bytes


def test_http_settings_defaults(monkeypatch):
    monkeypatch.delenv("READYPROBE_USER_AGENT", raising=False)
    monkeypatch.setenv("READYPROBE_HTTP_REDIRECTS", "on")
    settings = config.load_http_settings()
    assert settings.user_agent == DEFAULT_USER_AGENT
    assert settings.allow_redirects is True


def test_app_settings_from_env(monkeypatch):
    monkeypatch.setenv("READYPROBE_IMAGE", "demo")
    monkeypatch.setenv("READYPROBE_CONTAINER", "demo-running")
    monkeypatch.setenv("READYPROBE_PORT", "8080")
    monkeypatch.setenv("READYPROBE_PATH", "health")
    monkeypatch.setenv("READYPROBE_MARKER", "You are calling me from")
    monkeypatch.setenv("READYPROBE_KEEP_ON_FAILURE", "yes")

    settings = config.load_app_settings()
    assert settings.image == "demo"
    assert settings.container == "demo-running"
    assert settings.port == 8080
    assert settings.container_port == AppSettings.container_port
    assert settings.url == "http://localhost:8080/health"
    assert settings.marker == "You are calling me from"
    assert settings.keep_on_failure is True
    assert settings.cleanup_on_success is False


def test_app_settings_defaults_match_sample_app():
    settings = AppSettings()
    assert settings.image == "sampleapp"
    assert settings.container == "samplerunning"
    assert settings.url == "http://localhost:5050/"


def _raised(exc, cause=None):
    try:
        try:
            raise cause if cause is not None else exc
        except Exception as inner:
            if cause is None:
                raise
            raise exc from inner
    except Exception as outer:
        return outer


@pytest.mark.parametrize(
    ("exc", "category"),
    [
        (_raised(httpx.ReadTimeout("slow")), ErrorCategory.TIMEOUT),
        (_raised(httpx.ConnectError("refused")), ErrorCategory.CONNECTION_ERROR),
        (_raised(httpx.ConnectError("dns"), socket.gaierror(-2, "Name or service not known")), ErrorCategory.DNS_ERROR),
        (_raised(httpx.ConnectError("tls"), ssl.SSLError("bad cert")), ErrorCategory.SSL_ERROR),
        (ConnectionRefusedError(), ErrorCategory.CONNECTION_ERROR),
        (socket.timeout(), ErrorCategory.TIMEOUT),
        (ValueError("odd"), ErrorCategory.UNKNOWN_ERROR),
    ],
)
def test_categorize_exception(exc, category):
    assert categorize_exception(exc) == category


def test_error_category_reasons():
    assert error_category_to_reason(ErrorCategory.TIMEOUT).startswith("Timed out")
    assert error_category_to_reason(ErrorCategory.NONE) == ""
    assert error_category_to_reason(None) == ""


def test_pipeline_error_carries_stage():
    err = PipelineError("wait", "deadline exceeded")
    assert isinstance(err, ReadyProbeError)
    assert err.stage == "wait"
    assert str(err) == "wait: deadline exceeded"


def test_app_settings_env_port_out_of_range_falls_back(monkeypatch):
    monkeypatch.setenv("READYPROBE_PORT", "70000")
    monkeypatch.setenv("READYPROBE_CONTAINER_PORT", "0")
    settings = config.load_app_settings()
    assert settings.port == AppSettings.port
    assert settings.container_port == AppSettings.container_port


def test_http_settings_timeout_env(monkeypatch):
    monkeypatch.setenv("READYPROBE_HTTP_TIMEOUT", "2.5")
    assert config.load_http_settings().timeout == 2.5
    monkeypatch.setenv("READYPROBE_HTTP_TIMEOUT", "0")
    assert config.load_http_settings().timeout == config.HttpSettings.timeout
