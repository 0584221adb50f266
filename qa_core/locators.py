"""Ordered multi-strategy element resolution.

A LocatorSpec lists candidate selectors for one logical element, most specific
first. ElementLocator walks them in declaration order on every poll and returns
the first strategy whose match is in the requested state, so a generic text
selector never wins over a specific attribute selector that also matches.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator

from qa_core.errors import LocatorTimeout
from qa_core.waits import DEFAULT_POLL_INTERVAL_MS, poll_until, sleeper_for

LOGGER = logging.getLogger("qa.locators")

STATES = ("attached", "visible", "actionable")
# Only the first few matches of a broad selector are checked for actionability.
MAX_CANDIDATES = 5

LOCATOR_TIMEOUTS: Counter[str] = Counter()


@dataclass(frozen=True)
class LocatorSpec:
    """Immutable ordered list of selector strategies for one logical element."""

    name: str
    strategies: tuple[str, ...]

    def __post_init__(self) -> None:
        strategies = tuple(self.strategies)
        if not strategies:
            raise ValueError(f"LocatorSpec {self.name!r} needs at least one strategy")
        object.__setattr__(self, "strategies", strategies)

    @classmethod
    def of(cls, name: str, *selectors: str) -> LocatorSpec:
        return cls(name=name, strategies=tuple(selectors))

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ResolvedElement:
    """Concrete handle plus which strategy produced it (index into spec.strategies)."""

    handle: Locator
    spec_name: str
    strategy: str
    index: int


class ElementLocator:
    """Resolve LocatorSpecs against a page or a previously resolved parent element."""

    def __init__(
        self,
        root: Any,
        timeout_ms: int = 10_000,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ) -> None:
        self.root = root
        self.timeout_ms = timeout_ms
        self.poll_interval_ms = poll_interval_ms
        self._sleep = sleeper_for(root)

    def within(self, parent: Locator | ResolvedElement) -> ElementLocator:
        """Scope resolution to one parent (a cart row, a product card)."""
        scope = parent.handle if isinstance(parent, ResolvedElement) else parent
        return ElementLocator(scope, timeout_ms=self.timeout_ms, poll_interval_ms=self.poll_interval_ms)

    def resolve(
        self,
        spec: LocatorSpec,
        state: str = "actionable",
        timeout_ms: int | None = None,
    ) -> ResolvedElement:
        """Return the first strategy's element in ``state``, or raise LocatorTimeout."""

        if state not in STATES:
            raise ValueError(f"Unknown element state {state!r}; expected one of {STATES}")
        timeout = self.timeout_ms if timeout_ms is None else timeout_ms
        found: list[ResolvedElement] = []

        def attempt() -> bool:
            match = self._first_match(spec, state)
            if match is None:
                return False
            found.append(match)
            return True

        if not poll_until(
            attempt,
            timeout,
            self.poll_interval_ms,
            description=f"resolve {spec.name}",
            sleep=self._sleep,
        ):
            LOCATOR_TIMEOUTS[spec.name] += 1
            raise LocatorTimeout(spec.name, spec.strategies, timeout, state)

        resolved = found[-1]
        LOGGER.debug(
            "locator_resolved",
            extra={"spec": spec.name, "strategy": resolved.strategy, "strategy_index": resolved.index},
        )
        return resolved

    def resolve_all(
        self,
        spec: LocatorSpec,
        timeout_ms: int | None = None,
        required: bool = True,
    ) -> list[Locator]:
        """Return every match of the first strategy that matches anything.

        With ``required=False`` a timeout yields an empty list instead of raising.
        """

        timeout = self.timeout_ms if timeout_ms is None else timeout_ms
        found: list[list[Locator]] = []

        def attempt() -> bool:
            for selector in spec.strategies:
                locator = self.root.locator(selector)
                total = locator.count()
                if total > 0:
                    found.append([locator.nth(i) for i in range(total)])
                    return True
            return False

        if poll_until(
            attempt,
            timeout,
            self.poll_interval_ms,
            description=f"resolve_all {spec.name}",
            sleep=self._sleep,
        ):
            return found[-1]
        if required:
            LOCATOR_TIMEOUTS[spec.name] += 1
            raise LocatorTimeout(spec.name, spec.strategies, timeout, "attached")
        return []

    def count(self, spec: LocatorSpec) -> int:
        """Attached match count of the first matching strategy; never waits."""
        for selector in spec.strategies:
            try:
                total = self.root.locator(selector).count()
            except PlaywrightError:
                continue
            if total > 0:
                return total
        return 0

    def _first_match(self, spec: LocatorSpec, state: str) -> ResolvedElement | None:
        for index, selector in enumerate(spec.strategies):
            locator = self.root.locator(selector)
            try:
                total = locator.count()
            except PlaywrightError:
                continue
            for position in range(min(total, MAX_CANDIDATES)):
                handle = locator.nth(position)
                if _in_state(handle, state):
                    return ResolvedElement(
                        handle=handle,
                        spec_name=spec.name,
                        strategy=selector,
                        index=index,
                    )
        return None


def _in_state(handle: Locator, state: str) -> bool:
    if state == "attached":
        return True
    try:
        if not handle.is_visible():
            return False
        return state == "visible" or handle.is_enabled()
    except PlaywrightError:
        return False
