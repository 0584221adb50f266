from __future__ import annotations

import logging

from config import ROUTES
from pages.base_page import BasePage
from qa_core.errors import LocatorTimeout
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED, AllOf, MarkerAttached
from qa_core.text import MoneyAmount, parse_money

LOGGER = logging.getLogger("qa.pages.product")


class ProductPage(BasePage):
    """Single product detail page."""

    READY = NETWORK_SETTLED

    TITLE = LocatorSpec.of("product title", "#content h1", ".product-title", "h1")
    PRICE = LocatorSpec.of("product price", "#content .price-new", ".product-price", "#content .price")
    OPTION_SELECTS = LocatorSpec.of("product option selects", "#product select[name^='option']", "select[name^='option']")
    QUANTITY = LocatorSpec.of("product quantity", "#product input[name='quantity']", "input[name='quantity']")
    ADD_TO_CART = LocatorSpec.of(
        "product add to cart",
        "#button-cart",
        "#product button:has-text('Add to Cart')",
        "button:has-text('Add to Cart')",
    )
    SUCCESS_ALERT = LocatorSpec.of(
        "product added notification",
        "#notification-box-top .toast-body",
        ".alert-success",
    )

    def open(self, product_id: int | str) -> ProductPage:
        # Options and the cart button render after the network settles.
        ready = AllOf((NETWORK_SETTLED, MarkerAttached(self.ADD_TO_CART, state="attached")))
        self.navigate(ROUTES["product"].format(product_id=product_id), ready=ready)
        return self

    def name(self) -> str:
        return self.get_text(self.TITLE)

    def price(self) -> MoneyAmount | None:
        """Displayed price; None when it is missing or unparseable."""
        return parse_money(self.query(lambda: self.get_text(self.PRICE), "", event="product_price_missing"))

    def select_option(self, label: str, index: int = 0) -> ProductPage:
        selects = self.locator.resolve_all(self.OPTION_SELECTS)
        if index >= len(selects):
            raise IndexError(f"product has {len(selects)} option selects, no index {index}")
        self.actions.select(selects[index], label=label, description=f"{self.OPTION_SELECTS.name}[{index}]")
        return self

    def set_quantity(self, quantity: int) -> ProductPage:
        self.fill(self.QUANTITY, str(quantity))
        return self

    def add_to_cart(self, quantity: int = 1) -> ProductPage:
        if quantity != 1:
            self.set_quantity(quantity)
        self.click(self.ADD_TO_CART)
        self.settle()
        try:
            self.wait_for(self.SUCCESS_ALERT, timeout_ms=min(self.timeout_ms, 5_000))
        except LocatorTimeout:
            LOGGER.info("add_notification_missing", extra={"url": self.url})
        return self

    def is_success_shown(self) -> bool:
        return self.is_visible(self.SUCCESS_ALERT)
