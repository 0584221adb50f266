"""Search-page filters: category and term via the search form, price and brand via the AJAX sidebar."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import urlencode

from config import ROUTES
from pages.base_page import BasePage
from qa_core.errors import LocatorTimeout
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED

LOGGER = logging.getLogger("qa.pages.filter")

CATEGORY_IDS = {
    "Components": "25",
    "Cameras": "33",
    "Laptops": "18",
    "Tablets": "57",
    "Software": "17",
    "Desktops": "20",
    "Phones & PDAs": "24",
    "MP3 Players": "34",
}


@dataclass(frozen=True)
class ProductFilters:
    category: str | None = None
    search: str | None = None
    search_in_description: bool = False
    min_price: int | float | None = None
    max_price: int | float | None = None
    brands: tuple[str, ...] = field(default_factory=tuple)

    @property
    def needs_search_form(self) -> bool:
        return bool(self.category or self.search)


def search_url(filters: ProductFilters) -> str:
    """Search route with the form's query parameters; unknown categories map to "0" (all)."""

    params: dict[str, str] = {}
    if filters.search:
        params["search"] = filters.search
    if filters.category:
        params["category_id"] = CATEGORY_IDS.get(filters.category, "0")
    if filters.search_in_description:
        params["description"] = "true"
    route = ROUTES["search"]
    return f"{route}&{urlencode(params)}" if params else route


class ProductFilterPage(BasePage):
    READY = NETWORK_SETTLED

    CATEGORY = LocatorSpec.of("search category", "#content select[name='category_id']", "select[name='category_id']")
    SEARCH_INPUT = LocatorSpec.of("search criteria", "#input-search", "#content input[name='search']")
    DESCRIPTION = LocatorSpec.of("search in description", "#description", "input[name='description']")
    SEARCH_BUTTON = LocatorSpec.of("search criteria button", "#button-search", "#content input[value='Search']")
    MIN_PRICE = LocatorSpec.of("filter min price", "input[name='mz_fp[min]']")
    MAX_PRICE = LocatorSpec.of("filter max price", "input[name='mz_fp[max]']")
    BRAND_GROUP = LocatorSpec.of("manufacturer filter", ".mz-filter-group.manufacturer")
    PRODUCTS = LocatorSpec.of(
        "filtered products",
        ".content-products .product-layout",
        "#content .product-thumb",
        ".product-layout",
    )
    PRODUCT_TITLES = LocatorSpec.of(
        "filtered product titles",
        ".content-products .product-layout h4",
        "#content .product-thumb .caption h4",
    )
    NO_RESULTS = LocatorSpec.of(
        "filter no results",
        ".content-products p:text-matches('no product|no results', 'i')",
        "#content p:text-matches('no product that matches', 'i')",
    )

    def open(self) -> ProductFilterPage:
        self.navigate(ROUTES["search"])
        return self

    def apply_filters(self, filters: ProductFilters) -> ProductFilterPage:
        """Apply every filter in ``filters``; brands missing from the sidebar are skipped and logged."""

        if filters.needs_search_form:
            if self.get_count(self.SEARCH_BUTTON):
                self._submit_search_form(filters)
            else:
                self.navigate(search_url(filters))
        if filters.min_price is not None or filters.max_price is not None:
            self.set_price_range(filters.min_price, filters.max_price)
        for brand in filters.brands:
            if not self.select_brand(brand):
                LOGGER.warning("brand_filter_unavailable", extra={"brand": brand, "url": self.url})
        return self

    def _submit_search_form(self, filters: ProductFilters) -> None:
        if filters.category:
            self.actions.select(self.resolve(self.CATEGORY, state="visible"), label=filters.category)
        if filters.search:
            self.fill(self.SEARCH_INPUT, filters.search)
        if filters.search_in_description:
            self.check(self.DESCRIPTION)
        self.click(self.SEARCH_BUTTON)
        self.settle()

    def set_price_range(self, min_price: int | float | None, max_price: int | float | None) -> ProductFilterPage:
        for spec, value in ((self.MIN_PRICE, min_price), (self.MAX_PRICE, max_price)):
            if value is None:
                continue
            element = self.fill(spec, str(value))
            # The sidebar only refilters on change.
            element.handle.dispatch_event("change")
        self.settle()
        return self

    def select_brand(self, brand: str) -> bool:
        """Tick a manufacturer checkbox by its label; False when the brand is not offered."""
        try:
            group = self.resolve(self.BRAND_GROUP, state="visible")
        except LocatorTimeout:
            return False
        label = group.handle.locator(f"label:has-text({brand!r})").first
        if label.count() == 0:
            return False
        checkbox_id = label.get_attribute("for")
        if not checkbox_id:
            return False
        self.actions.check(self.page.locator(f"[id='{checkbox_id}']"), description=f"brand {brand}")
        self.settle()
        return True

    def product_count(self) -> int:
        return self.get_count(self.PRODUCTS)

    def product_names(self) -> list[str]:
        return self.texts(self.PRODUCT_TITLES)

    def has_products(self) -> bool:
        return self.product_count() > 0

    def has_no_results(self) -> bool:
        return self.is_visible(self.NO_RESULTS)
