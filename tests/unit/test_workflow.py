# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import docker.errors
import pytest

from readyprobe.config import AppSettings
from readyprobe.errors import ContainerEngineError
from readyprobe.http.adapters import StubHttpClient
from readyprobe.http.models import HttpResponse
from readyprobe.poller import PollOutcome, PollPolicy, ReadinessPoller
from readyprobe.runtime import ReadyProbe
from readyprobe.workflow import STAGES, ContainerEngine, SampleAppPipeline
from readyprobe.workflow.smoke import check_body_marker, check_container_running, check_published_port


class FakeContainer:
    def __init__(self, name, image, ports=None, status="running"):
        self.name = name
        self.image = image
        self.id = f"{name}-0123456789abcdef"
        self.short_id = self.id[:10]
        self.status = status
        self.ports = ports or {}
        self.stopped = False
        self.removed = False

    def stop(self, timeout=10):  # noqa: ARG002
        self.stopped = True
        self.status = "exited"

    def remove(self, force=False):  # noqa: ARG002
        self.removed = True

    def logs(self, tail=100):  # noqa: ARG002
        return b" * Running on http://0.0.0.0:5050\n"


class FakeContainers:
    def __init__(self):
        self.by_name = {}
        self.run_kwargs = None
        self.run_status = "running"

    def get(self, name):
        container = self.by_name.get(name)
        if container is None or container.removed:
            raise docker.errors.NotFound(f"No such container: {name}")
        return container

    def run(self, image, **kwargs):
        self.run_kwargs = kwargs
        ports = {
            key: [{"HostIp": "0.0.0.0", "HostPort": str(host_port)}] for key, host_port in kwargs.get("ports", {}).items()
        }
        container = FakeContainer(kwargs["name"], image, ports=ports, status=self.run_status)
        self.by_name[kwargs["name"]] = container
        return container


class FakeImage:
    id = "sha256:feedface"


class FakeImages:
    def __init__(self, fail=False):
        self.fail = fail
        self.builds = []

    def build(self, path, tag, rm=True):  # noqa: ARG002
        self.builds.append((path, tag))
        if self.fail:
            raise docker.errors.BuildError("pip install failed", [{"stream": "Step 2/8 : RUN pip install flask"}])
        return FakeImage(), iter([{"stream": "Successfully built feedface\n"}])


class FakeDocker:
    def __init__(self, build_fails=False):
        self.containers = FakeContainers()
        self.images = FakeImages(fail=build_fails)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


SETTINGS = AppSettings(marker="You are calling me from")


def make_probe(responses=None, policy=None):
    policy = policy or PollPolicy(timeout=4.0, interval=1.0, connect_timeout=1.0, read_timeout=1.0)
    probe = ReadyProbe(http_client=StubHttpClient(responses or {}), policy=policy)
    clock = FakeClock()
    probe.poller = ReadinessPoller(probe.http_client, policy, clock=clock, sleep=clock.sleep)
    return probe


def healthy_responses():
    return {SETTINGS.url: HttpResponse(ok=True, status_code=200, text="<h1>You are calling me from 172.17.0.1</h1>")}


def test_engine_remove_container_ignores_missing():
    fake = FakeDocker()
    engine = ContainerEngine(fake)
    assert engine.remove_container("samplerunning") is False

    existing = fake.containers.run("sampleapp", name="samplerunning", ports={})
    assert engine.remove_container("samplerunning") is True
    assert existing.stopped and existing.removed


def test_engine_run_publishes_port_and_inspects():
    fake = FakeDocker()
    engine = ContainerEngine(fake)
    engine.run_container("sampleapp", "samplerunning", 5050, 5050)

    assert fake.containers.run_kwargs["detach"] is True
    assert fake.containers.run_kwargs["tty"] is True
    assert fake.containers.run_kwargs["ports"] == {"5050/tcp": 5050}
    assert engine.container_status("samplerunning") == "running"
    assert engine.published_port("samplerunning", 5050) == 5050
    assert engine.published_port("samplerunning", 8080) is None
    assert "Running on" in engine.container_logs("samplerunning")
    assert engine.container_status("missing") is None
    assert engine.container_logs("missing") == ""


def test_engine_wraps_build_errors():
    engine = ContainerEngine(FakeDocker(build_fails=True))
    with pytest.raises(ContainerEngineError, match="pip install failed"):
        engine.build_image(".", "sampleapp")


def test_engine_wraps_api_errors():
    class BrokenContainers(FakeContainers):
        def run(self, image, **kwargs):  # noqa: ARG002
            raise docker.errors.APIError("port is already allocated")

    fake = FakeDocker()
    fake.containers = BrokenContainers()
    with pytest.raises(ContainerEngineError, match="port is already allocated"):
        ContainerEngine(fake).run_container("sampleapp", "samplerunning", 5050, 5050)


def test_smoke_checks():
    fake = FakeDocker()
    engine = ContainerEngine(fake)
    engine.run_container("sampleapp", "samplerunning", 5050, 5050)

    assert check_container_running(engine, "samplerunning").passed is True
    assert check_published_port(engine, "samplerunning", 5050, 5050).passed is True
    assert check_published_port(engine, "samplerunning", 5050, 6000).passed is False

    client = StubHttpClient(healthy_responses())
    assert check_body_marker(client, SETTINGS.url, "You are calling me from").passed is True
    missing_marker = check_body_marker(client, SETTINGS.url, "nope")
    assert missing_marker.passed is False
    assert "not in response body" in missing_marker.detail
    unreachable = check_body_marker(client, "http://localhost:1/", "x")
    assert unreachable.passed is False
    assert "Connection refused" in unreachable.detail


def test_pipeline_success_runs_every_stage():
    fake = FakeDocker()
    probe = make_probe(healthy_responses())
    report = SampleAppPipeline(SETTINGS, ContainerEngine(fake), probe).run()

    assert report.ok is True
    assert [stage.name for stage in report.stages] == list(STAGES)
    assert report.poll.outcome == PollOutcome.SUCCESS
    assert report.poll.attempts == 1
    assert report.smoke.passed is True
    assert len(report.smoke.checks) == 3
    assert fake.images.builds == [(".", "sampleapp")]
    assert report.cleaned_up is False
    assert fake.containers.by_name["samplerunning"].removed is False


def test_pipeline_replaces_previous_container_and_cleans_up_on_request():
    fake = FakeDocker()
    previous = fake.containers.run("sampleapp", name="samplerunning", ports={})
    settings = AppSettings(cleanup_on_success=True)
    report = SampleAppPipeline(settings, ContainerEngine(fake), make_probe(healthy_responses())).run()

    assert previous.removed is True
    assert report.stages[0].detail == "removed previous samplerunning"
    assert report.ok is True
    assert report.cleaned_up is True


def test_pipeline_wait_failure_collects_logs_and_cleans_up():
    fake = FakeDocker()
    report = SampleAppPipeline(SETTINGS, ContainerEngine(fake), make_probe()).run()

    assert report.ok is False
    assert report.failed_stage.name == "wait"
    assert [stage.name for stage in report.stages] == ["cleanup", "build", "run", "wait"]
    assert report.poll.outcome == PollOutcome.DEADLINE_EXCEEDED
    assert report.poll.elapsed >= 4.0
    assert report.smoke is None
    assert "Running on" in report.logs
    assert report.cleaned_up is True


def test_pipeline_keep_on_failure_leaves_container():
    fake = FakeDocker()
    settings = AppSettings(keep_on_failure=True)
    report = SampleAppPipeline(settings, ContainerEngine(fake), make_probe()).run()

    assert report.ok is False
    assert report.cleaned_up is False
    assert fake.containers.by_name["samplerunning"].removed is False


def test_pipeline_build_failure_stops_early():
    fake = FakeDocker(build_fails=True)
    report = SampleAppPipeline(SETTINGS, ContainerEngine(fake), make_probe(healthy_responses())).run()

    assert report.failed_stage.name == "build"
    assert report.poll is None
    assert report.logs is None
    assert fake.containers.run_kwargs is None


def test_pipeline_smoke_failure_when_container_exited():
    fake = FakeDocker()
    fake.containers.run_status = "exited"
    report = SampleAppPipeline(SETTINGS, ContainerEngine(fake), make_probe(healthy_responses())).run()

    assert report.failed_stage.name == "smoke"
    assert report.smoke.passed is False
    assert [check.name for check in report.smoke.failures] == ["container_running"]
    data = report.to_dict()
    assert data["ok"] is False
    assert data["stages"][-1]["name"] == "smoke"
    assert data["poll"]["ready"] is True


def test_pipeline_stage_detail_omits_stage_name():
    report = SampleAppPipeline(SETTINGS, ContainerEngine(FakeDocker()), make_probe()).run()

    detail = report.failed_stage.detail
    assert not detail.startswith("wait:")
    assert "Connection refused" in detail


def test_pipeline_invalid_target_is_a_failed_stage_and_cleans_up():
    fake = FakeDocker()
    settings = AppSettings(host="")
    report = SampleAppPipeline(settings, ContainerEngine(fake), make_probe(healthy_responses())).run()

    assert report.ok is False
    assert report.failed_stage.name == "wait"
    assert "no host" in report.failed_stage.detail
    assert report.cleaned_up is True
    assert fake.containers.by_name["samplerunning"].removed is True


def test_body_marker_check_uses_policy_timeouts():
    policy = PollPolicy(timeout=4.0, interval=1.0, connect_timeout=0.5, read_timeout=1.5)
    probe = make_probe(healthy_responses(), policy=policy)
    report = SampleAppPipeline(SETTINGS, ContainerEngine(FakeDocker()), probe).run()

    assert report.ok is True
    marker_request = probe.http_client.requests[-1]
    assert marker_request.read_body is True
    assert marker_request.connect_timeout == 0.5
    assert marker_request.timeout == 1.5
    assert marker_request.max_duration == 2.0
    wait_request = probe.http_client.requests[0]
    assert wait_request.read_body is False


def test_app_settings_rejects_out_of_range_ports():
    with pytest.raises(ValueError, match="port out of range"):
        AppSettings(port=70000)
    with pytest.raises(ValueError, match="container_port out of range"):
        AppSettings(container_port=0)
