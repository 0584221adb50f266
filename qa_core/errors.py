"""Error taxonomy shared by locators, actions, page objects, and fixtures.

Page objects translate Playwright errors into these types at their boundary so
tests and hooks can tell "element never showed up" apart from "the business
expectation was false".
"""

from __future__ import annotations

from typing import Sequence


class QAError(Exception):
    """Base class for every framework-level failure."""


class LocatorTimeout(QAError):
    """No strategy of a locator spec produced an element in the wanted state in time."""

    def __init__(
        self,
        spec_name: str,
        strategies: Sequence[str],
        timeout_ms: int,
        state: str = "actionable",
    ) -> None:
        self.spec_name = spec_name
        self.strategies = tuple(strategies)
        self.timeout_ms = timeout_ms
        self.state = state
        tried = ", ".join(repr(s) for s in self.strategies)
        super().__init__(
            f"{spec_name!r} not {state} within {timeout_ms}ms; tried [{tried}]"
        )


class ActionFailed(QAError):
    """Every rung of the interaction fallback ladder failed."""

    def __init__(self, action: str, target: str, attempts: Sequence[tuple[str, str | None]]) -> None:
        self.action = action
        self.target = target
        self.attempts = tuple(attempts)
        chain = "; ".join(f"{strategy}: {error}" for strategy, error in self.attempts)
        super().__init__(f"{action} on {target!r} failed after [{chain}]")


class NavigationTimeout(QAError):
    """The page did not reach its readiness signal."""

    def __init__(self, url: str, signal: str, detail: str = "") -> None:
        self.url = url
        self.signal = signal
        message = f"{url} did not become ready ({signal})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class AssertionMismatch(QAError, AssertionError):
    """A business-level expectation did not hold."""


class FixtureMissing(QAError):
    """Persisted test data required by a dependent test is absent."""

    def __init__(self, path: str, prerequisite: str) -> None:
        self.path = path
        self.prerequisite = prerequisite
        super().__init__(
            f"No saved test data at {path}. Run {prerequisite} first to create it."
        )


class CollectionStateUnknown(QAError):
    """A cart/wishlist/compare page could not be classified as empty or populated."""


class CheckoutIncomplete(AssertionMismatch):
    """The checkout loop ran out of iterations before reaching confirmation."""


class CheckoutBounced(AssertionMismatch):
    """Checkout regressed to an earlier page, usually the cart, after a validation failure."""
