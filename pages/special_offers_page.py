from __future__ import annotations

import logging
from dataclasses import dataclass

from config import ROUTES
from pages.product_listing_page import ProductListingPage
from qa_core.locators import LocatorSpec
from qa_core.text import MoneyAmount, normalize_whitespace, parse_money
from qa_core.verification import names_match

LOGGER = logging.getLogger("qa.pages.specials")


@dataclass(frozen=True)
class SpecialOffer:
    name: str
    price: MoneyAmount | None
    regular_price: MoneyAmount | None

    @property
    def is_discounted(self) -> bool:
        if self.price is None or self.regular_price is None:
            return False
        return self.price.value < self.regular_price.value and self.price != self.regular_price


class SpecialOffersPage(ProductListingPage):
    """Products on special; same card grid and buttons as a category page."""

    PRICE_NEW = LocatorSpec.of("special price", ".price-new", ".price")
    PRICE_OLD = LocatorSpec.of("regular price", ".price-old")

    def open(self) -> SpecialOffersPage:
        self.navigate(ROUTES["specials"])
        if not self.is_visible(self.CARDS, timeout_ms=self.timeout_ms):
            LOGGER.warning("specials_without_products", extra={"url": self.url})
        return self

    def offers(self) -> list[SpecialOffer]:
        found: list[SpecialOffer] = []
        for card in self.locator.resolve_all(self.CARDS, timeout_ms=0, required=False):
            scoped = self.locator.within(card)
            name = self._first_text(scoped, self.TITLES)
            if not name:
                continue
            found.append(
                SpecialOffer(
                    name=name,
                    price=parse_money(self._first_text(scoped, self.PRICE_NEW)),
                    regular_price=parse_money(self._first_text(scoped, self.PRICE_OLD)),
                )
            )
        return found

    def index_of(self, name: str) -> int:
        """Card position of the product called ``name``; raises LookupError when it is not on special."""
        for index, title in enumerate(self.product_names()):
            if names_match(name, title):
                return index
        raise LookupError(f"{name!r} is not among the special offers")

    def add_named_to_cart(self, names: list[str]) -> list[str]:
        """Add each named product and return the names as listed on the page."""
        return [self._named(self.index_of(name), self.add_to_cart) for name in names]

    def _first_text(self, scoped, spec: LocatorSpec) -> str:
        handles = scoped.resolve_all(spec, timeout_ms=0, required=False)
        if not handles:
            return ""
        return normalize_whitespace(self.query(handles[0].text_content, "", event="special_text_unreadable"))
