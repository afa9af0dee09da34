# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Container workflow built around the readiness poller."""

from .containers import ContainerEngine
from .pipeline import STAGES, PipelineReport, SampleAppPipeline, StageResult
from .smoke import SmokeCheck, SmokeReport, check_body_marker, check_container_running, check_published_port

__all__ = [
    "STAGES",
    "ContainerEngine",
    "PipelineReport",
    "SampleAppPipeline",
    "SmokeCheck",
    "SmokeReport",
    "StageResult",
    "check_body_marker",
    "check_container_running",
    "check_published_port",
]
