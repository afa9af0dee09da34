# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Readiness poller exports."""

from .engine import ReadinessPoller, wait_until_ready
from .models import PollAttempt, PollOutcome, PollPolicy, PollResult, PollState

__all__ = [
    "PollAttempt",
    "PollOutcome",
    "PollPolicy",
    "PollResult",
    "PollState",
    "ReadinessPoller",
    "wait_until_ready",
]
