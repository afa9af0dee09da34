# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""readyprobe CLI."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from typing import Any

from ..config import AppSettings, load_app_settings, load_http_settings, load_poll_settings
from ..http import create_default_http_client
from ..log import setup_logging
from ..poller.models import PollPolicy, PollResult
from ..runtime import ReadyProbe
from ..workflow.pipeline import PipelineReport

CLI_TEXT_TRUNCATION_BYTES = 4096


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--json", action="store_true", help="Output JSON instead of a human-friendly summary")
    parser.add_argument("--log-level", default=None, help="Logging level (default: READYPROBE_LOG_LEVEL or WARNING)")
    parser.add_argument("--timeout", type=float, default=None, help="Total time budget in seconds")
    parser.add_argument("--interval", type=float, default=None, help="Delay between attempts in seconds")
    parser.add_argument("--connect-timeout", type=float, default=None, help="Per-attempt connect timeout in seconds")
    parser.add_argument("--read-timeout", type=float, default=None, help="Per-attempt response timeout in seconds")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Wait for an HTTP service to become ready and smoke-test it")
    sub = parser.add_subparsers(dest="command", required=True)

    wait = sub.add_parser("wait", help="Poll a URL until it responds or the deadline passes")
    wait.add_argument("url", help="Target URL, e.g. http://localhost:5050/")
    _add_common(wait)

    pipeline = sub.add_parser("pipeline", help="Build, run, wait for and smoke-test the sample app container")
    pipeline.add_argument("--image", default=None, help="Image tag to build")
    pipeline.add_argument("--container", default=None, help="Container name")
    pipeline.add_argument("--port", type=int, default=None, help="Host port to publish")
    pipeline.add_argument("--container-port", type=int, default=None, help="Port exposed inside the container")
    pipeline.add_argument("--context", default=None, help="Docker build context directory")
    pipeline.add_argument("--marker", default=None, help="String the response body must contain")
    pipeline.add_argument("--keep-on-failure", action="store_true", default=None, help="Leave the container running when a stage fails")
    pipeline.add_argument("--cleanup-on-success", action="store_true", default=None, help="Remove the container after a successful run")
    _add_common(pipeline)
    return parser


def build_policy(args: argparse.Namespace) -> PollPolicy:
    """Environment defaults overridden by any timing flags given on the command line."""
    settings = load_poll_settings()
    overrides = {
        "timeout": args.timeout,
        "interval": args.interval,
        "connect_timeout": args.connect_timeout,
        "read_timeout": args.read_timeout,
    }
    settings = replace(settings, **{k: v for k, v in overrides.items() if v is not None})
    return PollPolicy.from_settings(settings)


def _truncate_text_bytes(text: str, max_bytes: int) -> str:
    raw = text.encode("utf-8")
    if len(raw) <= max_bytes:
        return text
    suffix = "...[truncated]"
    keep = max_bytes - len(suffix.encode("utf-8"))
    if keep <= 0:
        return suffix
    # Keep the tail: the end of container logs is what explains a failure.
    return suffix + raw[-keep:].decode("utf-8", errors="ignore")


def _print_json(data: PollResult | PipelineReport) -> None:
    payload: dict[str, Any] = data.to_dict()
    if isinstance(payload.get("logs"), str):
        payload["logs"] = _truncate_text_bytes(payload["logs"], CLI_TEXT_TRUNCATION_BYTES)
    json.dump(payload, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")


def _print_poll(result: PollResult) -> None:
    if result.ready:
        status = f" (HTTP {result.status_code})" if result.status_code is not None else ""
        print(f"[readyprobe] {result.url} ready after {result.attempts} attempt(s) in {result.elapsed:.2f}s{status}")
        return
    print(f"[readyprobe] {result.url} NOT ready after {result.attempts} attempt(s) in {result.elapsed:.2f}s")
    if result.last_error:
        print(f"Last error: {result.last_error}")


def _print_pipeline(report: PipelineReport) -> None:
    print(f"[readyprobe] Pipeline {'passed' if report.ok else 'FAILED'}: {report.image} as {report.container} at {report.url}")
    for stage in report.stages:
        mark = "ok" if stage.ok else "FAIL"
        print(f"- {stage.name}: {mark} ({stage.elapsed:.2f}s) {stage.detail}")
    if report.smoke:
        for check in report.smoke.checks:
            print(f"  * {check.name}: {'pass' if check.passed else 'fail'} {check.detail}")
    if report.logs:
        print("Container logs:")
        print(_truncate_text_bytes(report.logs, CLI_TEXT_TRUNCATION_BYTES))
    if report.cleaned_up:
        print(f"Removed container {report.container}")


def _app_settings(args: argparse.Namespace) -> AppSettings:
    settings = load_app_settings()
    overrides = {
        "image": args.image,
        "container": args.container,
        "port": args.port,
        "container_port": args.container_port,
        "build_context": args.context,
        "marker": args.marker,
        "keep_on_failure": args.keep_on_failure,
        "cleanup_on_success": args.cleanup_on_success,
    }
    return replace(settings, **{k: v for k, v in overrides.items() if v is not None})


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        policy = build_policy(args)
        app_settings = _app_settings(args) if args.command == "pipeline" else None
    except ValueError as exc:
        parser.error(str(exc))

    http_client = create_default_http_client(load_http_settings())
    with ReadyProbe(http_client=http_client, policy=policy) as probe:
        if args.command == "wait":
            try:
                result = probe.wait(args.url)
            except ValueError as exc:
                parser.error(str(exc))
            if args.json:
                _print_json(result)
            else:
                _print_poll(result)
            return 0 if result.ready else 1

        report = probe.run_pipeline(app_settings)
    if args.json:
        _print_json(report)
    else:
        _print_pipeline(report)
    return 0 if report.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
