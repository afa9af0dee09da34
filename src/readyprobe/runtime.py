# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level readyprobe facade for waiting on and smoke-testing services."""

from __future__ import annotations

from contextlib import suppress

from .config import AppSettings, load_http_settings, load_poll_settings
from .http.client import HttpClient, create_default_http_client
from .http.models import ProbeTarget
from .poller.engine import ReadinessPoller
from .poller.models import PollPolicy, PollResult
from .workflow.containers import ContainerEngine
from .workflow.pipeline import PipelineReport, SampleAppPipeline


class ReadyProbe:
    """
    Convenience wrapper that shares one HTTP client between the poller and smoke checks.

    Closing the facade closes the client, so a CLI run holds exactly one
    connection pool for its lifetime.
    """

    def __init__(self, http_client: HttpClient | None = None, policy: PollPolicy | None = None):
        self.http_settings = load_http_settings()
        self.http_client = http_client or create_default_http_client(self.http_settings)
        self.policy = policy or PollPolicy.from_settings(load_poll_settings())
        self.poller = ReadinessPoller(self.http_client, self.policy)

    def wait(self, target: ProbeTarget | str) -> PollResult:
        return self.poller.poll(target)

    def run_pipeline(self, settings: AppSettings, engine: ContainerEngine | None = None) -> PipelineReport:
        pipeline = SampleAppPipeline(settings, engine or ContainerEngine(), self)
        return pipeline.run()

    def close(self) -> None:
        with suppress(Exception):
            if hasattr(self.http_client, "close"):
                self.http_client.close()

    def __enter__(self) -> ReadyProbe:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()
