# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Build, run, wait for and smoke-test the sample application container."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..config import AppSettings
from ..errors import PipelineError, ReadyProbeError
from ..poller.models import PollResult
from .containers import ContainerEngine
from .smoke import SmokeReport, check_body_marker, check_container_running, check_published_port

if TYPE_CHECKING:
    from ..runtime import ReadyProbe

logger = logging.getLogger(__name__)

STAGES = ("cleanup", "build", "run", "wait", "smoke")


@dataclass(frozen=True)
class StageResult:
    name: str
    ok: bool
    detail: str = ""
    elapsed: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "ok": self.ok, "detail": self.detail, "elapsed": round(self.elapsed, 3)}


@dataclass
class PipelineReport:
    image: str
    container: str
    url: str
    stages: list[StageResult] = field(default_factory=list)
    poll: PollResult | None = None
    smoke: SmokeReport | None = None
    logs: str | None = None
    cleaned_up: bool = False

    @property
    def ok(self) -> bool:
        return len(self.stages) == len(STAGES) and all(stage.ok for stage in self.stages)

    @property
    def failed_stage(self) -> StageResult | None:
        for stage in self.stages:
            if not stage.ok:
                return stage
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "image": self.image,
            "container": self.container,
            "url": self.url,
            "stages": [stage.to_dict() for stage in self.stages],
            "poll": self.poll.to_dict() if self.poll else None,
            "smoke": self.smoke.to_dict() if self.smoke else None,
            "logs": self.logs,
            "cleaned_up": self.cleaned_up,
        }


class SampleAppPipeline:
    """
    Runs the container workflow stage by stage, stopping at the first failure.

    The readiness wait only starts once the container is running, and smoke
    checks only run after it reports ready.
    """

    def __init__(
        self,
        settings: AppSettings,
        engine: ContainerEngine,
        prober: ReadyProbe,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.engine = engine
        self.prober = prober
        self._clock = clock

    def run(self) -> PipelineReport:
        settings = self.settings
        report = PipelineReport(image=settings.image, container=settings.container, url=settings.url)
        steps: dict[str, Callable[[PipelineReport], str]] = {
            "cleanup": self._cleanup,
            "build": self._build,
            "run": self._run,
            "wait": self._wait,
            "smoke": self._smoke,
        }

        for name in STAGES:
            started = self._clock()
            try:
                detail = steps[name](report)
            except (ReadyProbeError, ValueError) as exc:
                detail = exc.message if isinstance(exc, PipelineError) else str(exc)
                report.stages.append(StageResult(name, False, detail, self._clock() - started))
                logger.error("stage %s failed: %s", name, exc)
                self._on_failure(report, name)
                return report
            report.stages.append(StageResult(name, True, detail, self._clock() - started))
            logger.info("stage %s ok: %s", name, detail)

        if settings.cleanup_on_success:
            report.cleaned_up = self._remove_quietly()
        return report

    def _cleanup(self, report: PipelineReport) -> str:  # noqa: ARG002
        removed = self.engine.remove_container(self.settings.container)
        return f"removed previous {self.settings.container}" if removed else "nothing to remove"

    def _build(self, report: PipelineReport) -> str:  # noqa: ARG002
        image_id = self.engine.build_image(self.settings.build_context, self.settings.image)
        return f"{self.settings.image} ({image_id})"

    def _run(self, report: PipelineReport) -> str:  # noqa: ARG002
        settings = self.settings
        container_id = self.engine.run_container(settings.image, settings.container, settings.port, settings.container_port)
        return f"{settings.container} ({container_id[:12]})"

    def _wait(self, report: PipelineReport) -> str:
        result = self.prober.wait(self.settings.url)
        report.poll = result
        if not result.ready:
            raise PipelineError("wait", result.last_error or "deadline exceeded")
        return f"ready after {result.attempts} attempt(s) in {result.elapsed:.2f}s"

    def _smoke(self, report: PipelineReport) -> str:
        settings = self.settings
        smoke = SmokeReport()
        smoke.add(check_container_running(self.engine, settings.container))
        smoke.add(check_published_port(self.engine, settings.container, settings.container_port, settings.port))
        if settings.marker:
            connect_timeout, read_timeout = self.prober.policy.attempt_timeouts(0.0)
            smoke.add(
                check_body_marker(
                    self.prober.http_client,
                    settings.url,
                    settings.marker,
                    connect_timeout=connect_timeout,
                    read_timeout=read_timeout,
                )
            )
        report.smoke = smoke
        if not smoke.passed:
            failed = ", ".join(f"{check.name} ({check.detail})" for check in smoke.failures)
            raise PipelineError("smoke", failed)
        return f"{len(smoke.checks)} check(s) passed"

    def _on_failure(self, report: PipelineReport, stage: str) -> None:
        if stage in {"wait", "smoke"}:
            try:
                report.logs = self.engine.container_logs(self.settings.container)
            except ReadyProbeError as exc:
                logger.warning("could not collect logs for %s: %s", self.settings.container, exc)
        if not self.settings.keep_on_failure and stage != "cleanup":
            report.cleaned_up = self._remove_quietly()

    def _remove_quietly(self) -> bool:
        try:
            return self.engine.remove_container(self.settings.container)
        except ReadyProbeError as exc:
            logger.warning("cleanup of %s failed: %s", self.settings.container, exc)
            return False
