# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Poll policy, attempt and result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..config import PollSettings
from ..errors import DeadlineExceededError, ErrorCategory, error_category_to_reason

MIN_ATTEMPT_TIMEOUT = 0.01


class PollState(str, Enum):
    WAITING = "waiting"
    CHECKING = "checking"
    READY = "ready"
    EXPIRED = "expired"


class PollOutcome(str, Enum):
    SUCCESS = "success"
    TRANSIENT_FAILURE = "transient-failure"
    DEADLINE_EXCEEDED = "deadline-exceeded"


@dataclass(frozen=True)
class PollPolicy:
    """
    Timing parameters for one poll sequence.

    ``timeout`` is the total budget T, ``interval`` the fixed delay D between
    attempts, ``connect_timeout`` (C) and ``read_timeout`` (R) bound each
    individual check. A zero C or R bounds that phase by whatever remains of
    the total budget instead, so no check can block past the deadline.
    """

    timeout: float = 30.0
    interval: float = 2.0
    connect_timeout: float = 2.0
    read_timeout: float = 5.0

    def __post_init__(self) -> None:
        if not self.timeout > 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        for name in ("interval", "connect_timeout", "read_timeout"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

    @property
    def max_overshoot(self) -> float:
        """Upper bound on time spent past ``timeout`` before a terminal outcome."""
        return self.interval + self.connect_timeout + self.read_timeout

    def attempt_timeouts(self, elapsed: float) -> tuple[float, float]:
        """(connect, read) timeouts for an attempt starting ``elapsed`` seconds in."""
        remaining = max(self.timeout - elapsed, 0.0)
        connect, read = self.connect_timeout, self.read_timeout
        # Zero phases share what is left of the budget after the explicit ones.
        unbounded = (connect == 0) + (read == 0)
        if unbounded:
            share = max((remaining - connect - read) / unbounded, MIN_ATTEMPT_TIMEOUT)
            connect = connect or share
            read = read or share
        return (connect, read)

    @classmethod
    def from_settings(cls, settings: PollSettings) -> PollPolicy:
        return cls(
            timeout=settings.timeout,
            interval=settings.interval,
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
        )


@dataclass(frozen=True)
class PollAttempt:
    number: int
    outcome: PollOutcome
    duration: float
    elapsed: float
    status_code: int | None = None
    error_category: ErrorCategory = ErrorCategory.NONE
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "outcome": self.outcome.value,
            "duration": round(self.duration, 3),
            "elapsed": round(self.elapsed, 3),
            "status_code": self.status_code,
            "error_category": self.error_category.value,
            "error_message": self.error_message,
        }


@dataclass
class PollResult:
    """Terminal result of a poll sequence: either success or deadline-exceeded."""

    url: str
    outcome: PollOutcome
    attempts: int
    elapsed: float
    policy: PollPolicy
    status_code: int | None = None
    history: list[PollAttempt] = field(default_factory=list)

    @property
    def ready(self) -> bool:
        return self.outcome == PollOutcome.SUCCESS

    @property
    def last_failure(self) -> PollAttempt | None:
        for attempt in reversed(self.history):
            if attempt.outcome != PollOutcome.SUCCESS:
                return attempt
        return None

    @property
    def last_error(self) -> str | None:
        failure = self.last_failure
        if failure is None:
            return None
        reason = error_category_to_reason(failure.error_category)
        if reason and failure.error_message:
            return f"{reason} ({failure.error_message})"
        return reason or failure.error_message

    def raise_for_outcome(self) -> PollResult:
        """Return self on success, raise DeadlineExceededError otherwise."""
        if not self.ready:
            raise DeadlineExceededError(self)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "outcome": self.outcome.value,
            "ready": self.ready,
            "attempts": self.attempts,
            "elapsed": round(self.elapsed, 3),
            "status_code": self.status_code,
            "last_error": self.last_error,
            "policy": {
                "timeout": self.policy.timeout,
                "interval": self.policy.interval,
                "connect_timeout": self.policy.connect_timeout,
                "read_timeout": self.policy.read_timeout,
            },
            "history": [attempt.to_dict() for attempt in self.history],
        }
