"""Category grid with per-card cart, compare, and wishlist buttons."""

from __future__ import annotations

import logging

from config import ROUTES
from pages.base_page import BasePage
from qa_core.actions import onclick_handler
from qa_core.errors import LocatorTimeout
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED

LOGGER = logging.getLogger("qa.pages.listing")

DEFAULT_CATEGORY_PATH = "18"


class ProductListingPage(BasePage):
    """Card buttons only appear on hover, so every card action hovers first and
    relies on the ladder's force and onclick rungs when the hover is not enough.
    """

    READY = NETWORK_SETTLED

    CARDS = LocatorSpec.of("product cards", "#content .product-layout .product-thumb", ".product-thumb")
    TITLES = LocatorSpec.of("product card titles", ".product-thumb h4 a", ".product-thumb .caption a")
    CART_BUTTON = LocatorSpec.of(
        "card add to cart",
        "button[onclick*='cart.add']",
        "button.btn-cart",
        "button:has-text('Add to Cart')",
    )
    COMPARE_BUTTON = LocatorSpec.of("card compare", "button[onclick*='compare.add']", "button.btn-compare")
    WISHLIST_BUTTON = LocatorSpec.of("card wishlist", "button[onclick*='wishlist.add']", "button.btn-wishlist")
    SUCCESS_ALERT = LocatorSpec.of(
        "add success notification",
        "#notification-box-top .toast-body",
        ".alert-success",
        "#notification-box-top",
    )

    def open_category(self, path: str = DEFAULT_CATEGORY_PATH) -> ProductListingPage:
        self.navigate(ROUTES["category"].format(path=path))
        if not self.is_visible(self.CARDS, timeout_ms=self.timeout_ms):
            LOGGER.warning("category_without_products", extra={"path": path, "url": self.url})
        return self

    def product_count(self) -> int:
        return self.get_count(self.CARDS)

    def product_names(self) -> list[str]:
        return self.texts(self.TITLES)

    def product_name_at(self, index: int) -> str:
        titles = self.locator.resolve_all(self.TITLES)
        if index >= len(titles):
            raise IndexError(f"{len(titles)} products listed, no index {index}")
        return self.get_text(titles[index])

    def add_to_cart(self, index: int) -> ProductListingPage:
        return self._card_action(index, self.CART_BUTTON, "cart.add")

    def add_to_compare(self, index: int) -> ProductListingPage:
        return self._card_action(index, self.COMPARE_BUTTON, "compare.add")

    def add_to_wishlist(self, index: int) -> ProductListingPage:
        return self._card_action(index, self.WISHLIST_BUTTON, "wishlist.add")

    def add_many_to_cart(self, indices: list[int]) -> list[str]:
        """Add each card to the cart and return the names that were added, in order."""
        return [self._named(index, self.add_to_cart) for index in indices]

    def add_many_to_compare(self, indices: list[int]) -> list[str]:
        return [self._named(index, self.add_to_compare) for index in indices]

    def add_many_to_wishlist(self, indices: list[int]) -> list[str]:
        return [self._named(index, self.add_to_wishlist) for index in indices]

    def _named(self, index: int, add) -> str:
        name = self.product_name_at(index)
        add(index)
        return name

    def _card_action(self, index: int, button: LocatorSpec, function_path: str) -> ProductListingPage:
        cards = self.locator.resolve_all(self.CARDS)
        if index >= len(cards):
            raise IndexError(f"{len(cards)} product cards, no index {index}")
        card = cards[index]
        self.query(card.scroll_into_view_if_needed, None, event="card_scroll_failed")
        self.query(card.hover, None, event="card_hover_failed")

        target = self.locator.within(card).resolve(button, state="attached")
        self.actions.click(
            target,
            description=f"{button.name}[{index}]",
            handler=onclick_handler(function_path),
        )
        self.settle()
        try:
            self.wait_for(self.SUCCESS_ALERT, state="visible", timeout_ms=min(self.timeout_ms, 5_000))
        except LocatorTimeout:
            # The toast is cosmetic; the collection page is the source of truth.
            LOGGER.info("add_notification_missing", extra={"action": function_path, "index": index})
        return self
