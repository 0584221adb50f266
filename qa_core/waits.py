# Condition polling used instead of fixed sleeps after UI actions.
from __future__ import annotations

import logging
import time
from typing import Any, Callable

from playwright.sync_api import Error as PlaywrightError

LOGGER = logging.getLogger("qa.waits")

DEFAULT_POLL_INTERVAL_MS = 250


def sleeper_for(root: Any) -> Callable[[float], None]:
    """Return a sleep function that keeps Playwright's event loop running when possible."""

    page = root if hasattr(root, "wait_for_timeout") else getattr(root, "page", None)
    if page is not None and hasattr(page, "wait_for_timeout"):
        return lambda seconds: page.wait_for_timeout(seconds * 1000)
    return time.sleep


def poll_until(
    predicate: Callable[[], bool],
    timeout_ms: int,
    interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    *,
    description: str = "condition",
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Evaluate ``predicate`` until it is truthy or ``timeout_ms`` elapses.

    The predicate is always evaluated at least once, so ``timeout_ms=0`` is a
    single non-blocking check. Playwright errors raised by the predicate count
    as "not yet" because they are usually detached or re-rendering nodes.
    Returns False on timeout; the caller decides whether that is fatal.
    """

    deadline = clock() + max(timeout_ms, 0) / 1000
    attempts = 0
    while True:
        attempts += 1
        try:
            if predicate():
                return True
        except PlaywrightError as exc:
            LOGGER.debug(
                "poll_predicate_error",
                extra={"description": description, "attempt": attempts, "error": str(exc)},
            )
        remaining = deadline - clock()
        if remaining <= 0:
            LOGGER.debug(
                "poll_timeout",
                extra={"description": description, "attempts": attempts, "timeout_ms": timeout_ms},
            )
            return False
        sleep(min(interval_ms / 1000, remaining))
