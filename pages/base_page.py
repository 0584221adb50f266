# Shared page-object helpers for navigation, waits, queries, and retried actions.
from __future__ import annotations

import logging
from typing import Callable, TypeVar

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import (
    Locator,
    Page,
    expect,
)
from playwright.sync_api import (
    TimeoutError as PlaywrightTimeoutError,
)

from qa_core.actions import ActionRetrier
from qa_core.errors import LocatorTimeout, NavigationTimeout, QAError
from qa_core.locators import ElementLocator, LocatorSpec, ResolvedElement
from qa_core.readiness import DOM_READY, ReadinessSignal
from qa_core.text import normalize_whitespace
from qa_core.waits import DEFAULT_POLL_INTERVAL_MS, poll_until, sleeper_for

T = TypeVar("T")
Target = LocatorSpec | Locator

LOGGER = logging.getLogger("qa.pages")


class BasePage:
    """Base class for page objects with consistent timeout-aware helpers.

    Queries (is_visible, get_count, query) are total: they return a definite
    value and coerce "could not tell" to the documented default. get_text and
    wait_for raise LocatorTimeout. Actions propagate ActionFailed, because a
    silently failed mutation would invalidate the rest of the test.
    """

    READY: ReadinessSignal = DOM_READY

    def __init__(
        self,
        page: Page,
        base_url: str,
        timeout_ms: int = 10_000,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        retries: int = 0,
    ) -> None:
        self.page = page
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms
        self.poll_interval_ms = poll_interval_ms
        self.locator = ElementLocator(page, timeout_ms=timeout_ms, poll_interval_ms=poll_interval_ms)
        self.actions = ActionRetrier(attempt_timeout_ms=min(timeout_ms, 5_000), retries=retries)

    @property
    def url(self) -> str:
        return self.page.url

    def navigate(self, path: str = "", ready: ReadinessSignal | None = None) -> None:
        """Go to an absolute URL or a path under base_url, then wait for readiness.

        The goto is retried once for transient storefront/network slowness.
        """

        url = path if path.startswith(("http://", "https://")) else f"{self.base_url}{path}"
        try:
            self.page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
        except PlaywrightTimeoutError:
            LOGGER.warning("navigation_retry", extra={"url": url})
            try:
                self.page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
            except PlaywrightTimeoutError as exc:
                raise NavigationTimeout(url, "domcontentloaded", str(exc)) from exc
        (ready or self.READY).wait(self.page, self.timeout_ms)

    def settle(self, ready: ReadinessSignal | None = None) -> None:
        """Wait for a readiness signal after an in-page action (form submit, AJAX)."""
        (ready or self.READY).wait(self.page, self.timeout_ms)

    def resolve(self, spec: LocatorSpec, state: str = "actionable", timeout_ms: int | None = None) -> ResolvedElement:
        return self.locator.resolve(spec, state=state, timeout_ms=timeout_ms)

    def wait_for(self, target: Target, state: str = "visible", timeout_ms: int | None = None) -> Locator:
        """Block until ``target`` is in ``state``; raise LocatorTimeout otherwise."""

        timeout = self.timeout_ms if timeout_ms is None else timeout_ms
        if isinstance(target, LocatorSpec):
            if state in ("hidden", "detached"):
                return self._wait_gone(target, state, timeout)
            return self.locator.resolve(target, state=state, timeout_ms=timeout).handle
        handle = target.first
        if timeout <= 0:
            # Playwright reads timeout=0 as "wait forever"; zero here means check once.
            if not _locator_in_state(handle, state):
                raise LocatorTimeout(str(target), (str(target),), 0, state)
            return handle
        try:
            handle.wait_for(state=state, timeout=timeout)
        except PlaywrightTimeoutError as exc:
            raise LocatorTimeout(str(target), (str(target),), timeout, state) from exc
        return handle

    def wait_until(
        self,
        predicate: Callable[[], bool],
        timeout_ms: int | None = None,
        description: str = "condition",
    ) -> bool:
        """Poll ``predicate`` instead of sleeping; False on timeout."""
        return poll_until(
            predicate,
            self.timeout_ms if timeout_ms is None else timeout_ms,
            self.poll_interval_ms,
            description=description,
            sleep=sleeper_for(self.page),
        )

    def is_visible(self, target: Target, timeout_ms: int = 0) -> bool:
        """True when visible within ``timeout_ms``; never raises."""
        try:
            self.wait_for(target, state="visible", timeout_ms=timeout_ms)
        except (QAError, PlaywrightError):
            return False
        return True

    def get_text(self, target: Target, timeout_ms: int | None = None) -> str:
        """Whitespace-normalized text of the first visible match; raises LocatorTimeout."""
        handle = self.wait_for(target, state="visible", timeout_ms=timeout_ms)
        return normalize_whitespace(handle.text_content())

    def get_count(self, target: Target) -> int:
        """Attached match count, 0 when nothing matches; never raises."""
        try:
            if isinstance(target, LocatorSpec):
                return self.locator.count(target)
            return target.count()
        except PlaywrightError:
            return 0

    def texts(self, target: Target) -> list[str]:
        """Non-empty normalized texts of every match, in DOM order."""
        if isinstance(target, LocatorSpec):
            handles = self.locator.resolve_all(target, timeout_ms=0, required=False)
        else:
            handles = [target.nth(i) for i in range(self.get_count(target))]
        names: list[str] = []
        for handle in handles:
            text = normalize_whitespace(self.query(handle.text_content, "", event="text_read_failed"))
            if text:
                names.append(text)
        return names

    def query(self, fn: Callable[[], T], default: T, *, event: str = "query_fallback") -> T:
        """Run a read-only query, returning ``default`` when it cannot be answered.

        This is the documented absent/false fallback: locator, navigation, and
        Playwright errors are logged and coerced. Mutations must not use it.
        """
        try:
            return fn()
        except (QAError, PlaywrightError) as exc:
            LOGGER.info(
                event,
                extra={"page": type(self).__name__, "error": str(exc).splitlines()[0] if str(exc) else ""},
            )
            return default

    def click(self, spec: LocatorSpec, state: str = "actionable", **kwargs) -> ResolvedElement:
        """Resolve and click through the fallback ladder; raises on failure.

        Pass ``state="attached"`` for controls that stay hidden until hover;
        the force and script rungs can still operate them.
        """
        element = self.resolve(spec, state=state)
        self.actions.click(element, **kwargs)
        return element

    def fill(self, spec: LocatorSpec, value: str) -> ResolvedElement:
        element = self.resolve(spec, state="visible")
        self.actions.fill(element, value)
        return element

    def check(self, spec: LocatorSpec, checked: bool = True) -> ResolvedElement:
        element = self.resolve(spec, state="attached")
        self.actions.check(element, checked)
        return element

    def expect_visible(self, locator: Locator) -> None:
        """Assert visibility using the page object's configured timeout."""
        expect(locator).to_be_visible(timeout=self.timeout_ms)

    def _wait_gone(self, spec: LocatorSpec, state: str, timeout: int) -> Locator:
        def gone() -> bool:
            return all(_locator_in_state(self.page.locator(selector), state) for selector in spec.strategies)

        if not self.wait_until(gone, timeout, description=f"{spec.name} {state}"):
            raise LocatorTimeout(spec.name, spec.strategies, timeout, state)
        return self.page.locator(spec.strategies[0])


def _locator_in_state(locator: Locator, state: str) -> bool:
    """One non-waiting check of every match; hidden means no match is visible."""
    total = locator.count()
    if state == "attached":
        return total > 0
    if state == "detached":
        return total == 0
    visible = any(locator.nth(i).is_visible() for i in range(total))
    return visible if state == "visible" else not visible
