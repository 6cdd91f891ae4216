# SPDX-FileCopyrightText: 2026 The orgstrap Authors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Poll-until-ready waits for eventually consistent control-plane state.

Creating a project, a service account or a workload identity pool
returns before the resource is visible to every API.  Instead of
sleeping a fixed interval, wait points poll a readiness check with
capped exponential backoff until it passes or a deadline expires.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from .config import WaitSettings
from .gcloud_client import GcloudError
from .operations import OperationError, OperationReporter

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], float]


class PropagationTimeout(OperationError):
    """A resource did not become ready before the wait deadline."""


def backoff_delays(settings: WaitSettings):
    """Yield successive poll delays: initial, then doubling up to ``max_delay``."""
    delay = settings.initial_delay
    while True:
        yield delay
        delay = min(max(delay * 2, 1.0), settings.max_delay)


async def wait_until(
    check: Callable[[], Awaitable[bool]],
    *,
    what: str,
    settings: WaitSettings,
    progress: OperationReporter | None = None,
    sleep: SleepFn = asyncio.sleep,
    clock: ClockFn = time.monotonic,
) -> int:
    """Poll *check* until it returns True.

    A :class:`GcloudError` reporting "not found" counts as not ready yet;
    any other error propagates immediately.

    Args:
        check: Async readiness predicate.
        what: Human-readable name of the awaited condition.
        settings: Delay and deadline configuration.
        progress: Reporter for wait messages.
        sleep: Sleep function (injectable for tests and dry runs).
        clock: Monotonic clock (injectable for tests).

    Returns:
        The number of polls it took.

    Raises:
        PropagationTimeout: If the deadline passes first.
    """
    deadline = clock() + settings.timeout
    attempts = 0
    for delay in backoff_delays(settings):
        if delay > 0:
            await sleep(delay)
        attempts += 1
        try:
            if await check():
                logger.debug("%s ready after %d poll(s)", what, attempts)
                return attempts
        except GcloudError as e:
            if not e.not_found:
                raise
        if clock() >= deadline:
            break
        if progress is not None:
            progress.dim(f"Waiting for {what}...")

    raise PropagationTimeout(
        f"Timed out after {settings.timeout:g}s waiting for {what}"
    )
