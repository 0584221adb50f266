"""Product search: submitting a query and reading the result grid."""

from __future__ import annotations

import logging
from typing import Callable
from urllib.parse import quote

from config import ROUTES, is_route
from pages.base_page import BasePage
from playwright.sync_api import Error as PlaywrightError
from qa_core.errors import QAError
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED
from qa_core.verification import names_match

LOGGER = logging.getLogger("qa.pages.search")


class SearchResultsPage(BasePage):
    READY = NETWORK_SETTLED

    HEADER_INPUT = LocatorSpec.of(
        "header search input",
        "#search input[name='search']",
        "header input[name='search']",
        "input[type='text'][name*='search']",
        "input[placeholder*='Search' i]",
    )
    HEADER_BUTTON = LocatorSpec.of(
        "header search button",
        "#search button[type='submit']",
        "header button.type-text",
        "button:has-text('Search')",
    )
    SEARCH_FORM = LocatorSpec.of("search form", "#search", "form[action*='search']")
    RESULTS = LocatorSpec.of(
        "search results",
        "#entry_212408 .product-layout",
        "#content .product-layout",
        "#content .product-thumb",
    )
    TITLES = LocatorSpec.of(
        "search result titles",
        "#content .product-layout .caption h4 a",
        "#content .product-thumb h4 a",
        "#content .product-layout h4",
    )
    NO_RESULTS = LocatorSpec.of(
        "no search results message",
        "#content p:text-matches('no product that matches', 'i')",
        "#content :text-matches('no products|no results', 'i')",
    )

    def search(self, term: str) -> SearchResultsPage:
        """Search for ``term`` using the first strategy that gets to the results page.

        Strategies in order: header input with its button (or Enter), the
        search form's own submit, and direct navigation to the search route.
        Direct navigation always works, so search() never fails on the form.
        """

        strategies: tuple[tuple[str, Callable[[str], None]], ...] = (
            ("header_input", self._search_with_header),
            ("form_submit", self._search_with_form),
        )
        for name, strategy in strategies:
            try:
                strategy(term)
            except (QAError, PlaywrightError) as exc:
                LOGGER.info("search_strategy_failed", extra={"strategy": name, "error": str(exc).splitlines()[0]})
                continue
            if is_route(self.url, "search"):
                LOGGER.info("search_submitted", extra={"strategy": name, "term": term})
                return self
        self.open(term)
        LOGGER.info("search_submitted", extra={"strategy": "direct_url", "term": term})
        return self

    def open(self, term: str) -> SearchResultsPage:
        self.navigate(f"{ROUTES['search']}&search={quote(term)}")
        return self

    def _search_with_header(self, term: str) -> None:
        field = self.resolve(self.HEADER_INPUT, state="visible", timeout_ms=min(self.timeout_ms, 3_000))
        self.actions.fill(field, term)
        if self.locator.count(self.HEADER_BUTTON):
            self.click(self.HEADER_BUTTON, state="visible")
        else:
            field.handle.press("Enter")
        self.settle()

    def _search_with_form(self, term: str) -> None:
        form = self.resolve(self.SEARCH_FORM, state="attached", timeout_ms=min(self.timeout_ms, 3_000))
        field = form.handle.locator("input[name='search']").first
        self.actions.fill(field, term, description="search form input")
        form.handle.evaluate("form => (form.tagName === 'FORM' ? form : form.closest('form')).submit()")
        self.settle()

    def result_count(self) -> int:
        return self.get_count(self.RESULTS)

    def product_titles(self) -> list[str]:
        return self.texts(self.TITLES)

    def matching_products(self, term: str) -> list[str]:
        """Titles that contain ``term`` (or are contained in it), case-insensitively."""
        return [title for title in self.product_titles() if names_match(term, title)]

    def has_results(self) -> bool:
        return self.wait_until(
            lambda: self.result_count() > 0 or self.is_visible(self.NO_RESULTS),
            description="search results rendered",
        ) and self.result_count() > 0

    def is_no_results_shown(self) -> bool:
        return self.is_visible(self.NO_RESULTS, timeout_ms=self.timeout_ms)
