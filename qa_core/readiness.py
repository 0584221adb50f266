"""Pluggable "page has settled" signals used after navigation.

Static pages are ready at DOMContentLoaded, AJAX grids only once the network is
idle or a marker element shows up, so each page object declares its own signal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from qa_core.errors import LocatorTimeout, NavigationTimeout
from qa_core.locators import ElementLocator, LocatorSpec


class ReadinessSignal(Protocol):
    name: str

    def wait(self, page: Page, timeout_ms: int) -> None:
        """Block until ready or raise NavigationTimeout."""


@dataclass(frozen=True)
class LoadState:
    """Wait for a Playwright load state, optionally degrading to a weaker one.

    ``networkidle`` never fires on pages with long-polling widgets, so
    ``LoadState("networkidle", fallback="load")`` accepts "load" instead.
    """

    state: str = "domcontentloaded"
    fallback: str | None = None

    @property
    def name(self) -> str:
        return self.state if self.fallback is None else f"{self.state}|{self.fallback}"

    def wait(self, page: Page, timeout_ms: int) -> None:
        try:
            page.wait_for_load_state(self.state, timeout=timeout_ms)
            return
        except PlaywrightTimeoutError as exc:
            if self.fallback is None:
                raise NavigationTimeout(page.url, self.name, str(exc)) from exc
        try:
            page.wait_for_load_state(self.fallback, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(page.url, self.name, str(exc)) from exc


@dataclass(frozen=True)
class MarkerAttached:
    """Ready once a marker element reaches ``state``."""

    spec: LocatorSpec
    state: str = "visible"

    @property
    def name(self) -> str:
        return f"marker:{self.spec.name}"

    def wait(self, page: Page, timeout_ms: int) -> None:
        try:
            ElementLocator(page, timeout_ms=timeout_ms).resolve(self.spec, state=self.state)
        except LocatorTimeout as exc:
            raise NavigationTimeout(page.url, self.name, str(exc)) from exc


@dataclass(frozen=True)
class AllOf:
    """Every signal in order, each with the full timeout."""

    signals: tuple[ReadinessSignal, ...]

    @property
    def name(self) -> str:
        return "+".join(signal.name for signal in self.signals)

    def wait(self, page: Page, timeout_ms: int) -> None:
        for signal in self.signals:
            signal.wait(page, timeout_ms)


DOM_READY = LoadState("domcontentloaded")
NETWORK_SETTLED = LoadState("networkidle", fallback="load")
