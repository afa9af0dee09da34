# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
readyprobe package entrypoint.

This package waits for an HTTP service to become reachable within a bounded
time budget and smoke-tests it once it does. HTTP behavior is abstracted
behind an injectable client interface, container lifecycle calls go through
the Docker engine, and results are modeled with typed dataclasses.
"""

from .config import AppSettings, HttpSettings, PollSettings, load_app_settings, load_http_settings, load_poll_settings
from .errors import ContainerEngineError, DeadlineExceededError, ErrorCategory, PipelineError, ReadyProbeError
from .http import (
    HttpClient,
    HttpRequest,
    HttpResponse,
    HttpxClient,
    ProbeTarget,
    create_default_http_client,
)
from .log import setup_logging
from .poller import PollAttempt, PollOutcome, PollPolicy, PollResult, PollState, ReadinessPoller, wait_until_ready
from .runtime import ReadyProbe
from .version import __version__
from .workflow import ContainerEngine, PipelineReport, SampleAppPipeline

__all__ = [
    "AppSettings",
    "ContainerEngine",
    "ContainerEngineError",
    "DeadlineExceededError",
    "ErrorCategory",
    "HttpClient",
    "HttpRequest",
    "HttpResponse",
    "HttpSettings",
    "HttpxClient",
    "PipelineError",
    "PipelineReport",
    "PollAttempt",
    "PollOutcome",
    "PollPolicy",
    "PollResult",
    "PollSettings",
    "PollState",
    "ProbeTarget",
    "ReadinessPoller",
    "ReadyProbe",
    "ReadyProbeError",
    "SampleAppPipeline",
    "create_default_http_client",
    "load_app_settings",
    "load_http_settings",
    "load_poll_settings",
    "setup_logging",
    "wait_until_ready",
    "__version__",
]
