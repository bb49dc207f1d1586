"""Timeout-bounded polling.

Usage::

    from acmeflow.core.polling import poll_until

    await poll_until(
        is_ready,
        timeout=30.0,
        interval=1.0,
        description="order https://ca.example/order/1 to become ready",
    )
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from acmeflow.core.errors import PollTimeoutError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = logging.getLogger(__name__)


async def poll_until(
    check: Callable[[], Awaitable[bool]],
    *,
    timeout: float,
    interval: float,
    description: str,
) -> None:
    """Await *check* repeatedly until it returns ``True``.

    The predicate always runs at least once, even with a zero budget, so
    a minimal *timeout* behaves as a single status check.  Individual
    checks are not interrupted; the budget is evaluated between them.

    Parameters
    ----------
    check:
        Async predicate; ``True`` ends the poll.
    timeout:
        Total budget in seconds.
    interval:
        Delay between checks in seconds (capped by the remaining budget).
    description:
        What is being awaited, used in log and error messages.

    Raises
    ------
    PollTimeoutError
        If the budget is spent before *check* returns ``True``.

    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    attempts = 0

    while True:
        attempts += 1
        if await check():
            log.debug("Observed %s after %d attempt(s)", description, attempts)
            return

        remaining = deadline - loop.time()
        if remaining <= 0:
            msg = f"Timed out after {timeout}s waiting for {description} ({attempts} attempt(s))"
            raise PollTimeoutError(msg, timeout=timeout)

        await asyncio.sleep(min(interval, remaining))
