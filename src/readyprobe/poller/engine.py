# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Bounded readiness polling loop."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..config import load_poll_settings
from ..errors import ErrorCategory, categorize_exception
from ..http.client import HttpClient, create_default_http_client
from ..http.models import HttpRequest, HttpResponse, ProbeTarget
from .models import PollAttempt, PollOutcome, PollPolicy, PollResult, PollState

logger = logging.getLogger(__name__)


class ReadinessPoller:
    """
    Repeatedly checks a target until it answers or the policy's deadline passes.

    The loop is sequential: one check at a time, separated by ``policy.interval``
    (clamped to the remaining budget). Transient failures are absorbed; the only
    failure outcome is ``PollOutcome.DEADLINE_EXCEEDED``. ``clock`` and ``sleep``
    are injectable so timing can be driven deterministically.
    """

    def __init__(
        self,
        http_client: HttpClient,
        policy: PollPolicy | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.http_client = http_client
        self.policy = policy or PollPolicy.from_settings(load_poll_settings())
        self._clock = clock
        self._sleep = sleep
        self.state = PollState.WAITING

    def _transition(self, state: PollState) -> None:
        logger.debug("poll state %s -> %s", self.state.value, state.value)
        self.state = state

    def check(self, target: ProbeTarget, elapsed: float = 0.0) -> HttpResponse:
        """Issue a single connectivity check; never raises for transport failures."""
        connect_timeout, read_timeout = self.policy.attempt_timeouts(elapsed)
        request = HttpRequest(
            url=target.url,
            timeout=read_timeout,
            connect_timeout=connect_timeout,
            read_body=False,
        )
        try:
            return self.http_client.request(request)
        except Exception as exc:  # noqa: BLE001
            return HttpResponse(
                ok=False,
                url=target.url,
                error_message=str(exc),
                error_type=type(exc).__name__,
                error_category=categorize_exception(exc),
            )

    def poll(self, target: ProbeTarget | str) -> PollResult:
        if not isinstance(target, ProbeTarget):
            target = ProbeTarget.from_url(target)
        policy = self.policy
        history: list[PollAttempt] = []
        self.state = PollState.WAITING
        started = self._clock()

        while True:
            self._transition(PollState.CHECKING)
            attempt_started = self._clock()
            response = self.check(target, attempt_started - started)
            now = self._clock()
            elapsed = now - started
            number = len(history) + 1

            if response.ok:
                history.append(
                    PollAttempt(
                        number=number,
                        outcome=PollOutcome.SUCCESS,
                        duration=now - attempt_started,
                        elapsed=elapsed,
                        status_code=response.status_code,
                    )
                )
                self._transition(PollState.READY)
                logger.info("%s ready after %d attempt(s) in %.2fs (status %s)", target, number, elapsed, response.status_code)
                return PollResult(
                    url=target.url,
                    outcome=PollOutcome.SUCCESS,
                    attempts=number,
                    elapsed=elapsed,
                    policy=policy,
                    status_code=response.status_code,
                    history=history,
                )

            expired = elapsed >= policy.timeout
            history.append(
                PollAttempt(
                    number=number,
                    outcome=PollOutcome.DEADLINE_EXCEEDED if expired else PollOutcome.TRANSIENT_FAILURE,
                    duration=now - attempt_started,
                    elapsed=elapsed,
                    status_code=response.status_code,
                    error_category=response.error_category
                    if response.error_category != ErrorCategory.NONE
                    else ErrorCategory.UNKNOWN_ERROR,
                    error_message=response.error_message,
                )
            )
            logger.debug("attempt %d against %s failed after %.2fs: %s", number, target, elapsed, response.error_message)

            if expired:
                self._transition(PollState.EXPIRED)
                logger.warning("%s not ready after %d attempt(s) in %.2fs", target, number, elapsed)
                return PollResult(
                    url=target.url,
                    outcome=PollOutcome.DEADLINE_EXCEEDED,
                    attempts=number,
                    elapsed=elapsed,
                    policy=policy,
                    history=history,
                )

            self._transition(PollState.WAITING)
            remaining = policy.timeout - elapsed
            delay = min(policy.interval, remaining)
            if delay > 0:
                self._sleep(delay)


def wait_until_ready(
    target: ProbeTarget | str,
    policy: PollPolicy | None = None,
    *,
    http_client: HttpClient | None = None,
) -> PollResult:
    """Poll ``target`` once through a fresh or supplied client."""
    owns_client = http_client is None
    client = http_client or create_default_http_client()
    try:
        return ReadinessPoller(client, policy).poll(target)
    finally:
        if owns_client:
            client.close()
