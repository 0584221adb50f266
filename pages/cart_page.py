"""Shopping cart page object: line items, quantities, totals, and checkout entry."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from playwright.sync_api import Locator

from config import ROUTES
from pages.collection_page import CollectionPage
from qa_core.errors import ActionFailed, LocatorTimeout
from qa_core.locators import LocatorSpec
from qa_core.text import LINE_TOTAL_TOLERANCE, MoneyAmount, normalize_whitespace, parse_int, parse_money

LOGGER = logging.getLogger("qa.pages.cart")


@dataclass(frozen=True)
class CartLine:
    """One row of the cart table as displayed."""

    name: str
    model: str
    quantity: int | None
    unit_price: MoneyAmount | None
    total: MoneyAmount | None

    def expected_total(self) -> MoneyAmount | None:
        if self.unit_price is None or self.quantity is None:
            return None
        return self.unit_price.times(self.quantity)


@dataclass(frozen=True)
class LineTotalMismatch:
    name: str
    expected: MoneyAmount | None
    displayed: MoneyAmount | None
    reason: str


def line_total_mismatches(
    lines: list[CartLine],
    tolerance: float = LINE_TOTAL_TOLERANCE,
) -> list[LineTotalMismatch]:
    """Lines whose displayed total is not unit price x quantity within ``tolerance``.

    A line that cannot be parsed is reported as a mismatch, not skipped.
    """

    mismatches: list[LineTotalMismatch] = []
    for line in lines:
        expected = line.expected_total()
        if expected is None or line.total is None:
            mismatches.append(LineTotalMismatch(line.name, expected, line.total, "unparseable"))
        elif not line.total.approx_equal(expected, tolerance):
            mismatches.append(LineTotalMismatch(line.name, expected, line.total, "mismatch"))
    return mismatches


class CartPage(CollectionPage):
    """Page object for the checkout/cart route."""

    ROUTE = "cart"
    ROWS = LocatorSpec.of(
        "cart rows",
        ".table-responsive tbody tr:has(input[name^='quantity'])",
        "#content table tbody tr:has(input[name^='quantity'])",
    )
    ITEM_NAMES = LocatorSpec.of(
        "cart product names",
        ".table-responsive td.text-left > a",
        "#content table td a[href*='product_id']",
    )
    QUANTITY_INPUTS = LocatorSpec.of("cart quantity inputs", "input[name^='quantity']")
    EMPTY_MESSAGE = LocatorSpec.of(
        "empty cart message",
        "#content p:text-matches('shopping cart is empty', 'i')",
        "#content :text-matches('no products in your cart', 'i')",
    )
    UPDATE_BUTTON = LocatorSpec.of(
        "cart update button",
        "button[data-original-title='Update']",
        "button[type='submit'][title='Update']",
        "button.btn-primary:has(i.fa-sync-alt)",
        "button[type='submit']:has(i.fa-sync-alt)",
        "button:has-text('Update')",
    )
    REMOVE_BUTTONS = LocatorSpec.of(
        "cart remove buttons",
        "button[data-original-title='Remove']",
        "button[title='Remove']",
        "td button.btn-danger",
        "a[onclick*='cart.remove']",
        "button:has(i.fa-times-circle)",
        "button:has(i.fa-trash)",
    )
    REMOVE_FUNCTION = "cart.remove"
    CHECKOUT_BUTTON = LocatorSpec.of(
        "cart checkout button",
        "#content a.btn-primary[href*='checkout/checkout']",
        "#content a:has-text('Checkout')",
    )
    TOTAL_ROWS = LocatorSpec.of(
        "cart totals",
        "#content .col-sm-4 table tr",
        "#content table:not(:has(input[name^='quantity'])) tr:has(strong)",
    )

    def open(self) -> CartPage:
        super().open()
        return self

    def line_items(self) -> list[CartLine]:
        """Parse every product row; unparseable prices come back as None."""

        rows = self.locator.resolve_all(self.ROWS, timeout_ms=0, required=False)
        return [self._parse_row(row) for row in rows]

    def _parse_row(self, row: Locator) -> CartLine:
        cells = row.locator("td")
        cell_count = cells.count()
        name = normalize_whitespace(row.locator("td.text-left a").first.text_content())
        model = ""
        if cell_count >= 3:
            model = normalize_whitespace(cells.nth(2).text_content())
        quantity_input = row.locator("input[name^='quantity']").first
        quantity = parse_int(self.query(quantity_input.input_value, "", event="cart_quantity_unreadable"))
        unit_price = parse_money(cells.nth(cell_count - 2).text_content()) if cell_count >= 2 else None
        total = parse_money(cells.nth(cell_count - 1).text_content()) if cell_count >= 1 else None
        return CartLine(name=name, model=model, quantity=quantity, unit_price=unit_price, total=total)

    def set_quantity(self, index: int, quantity: int) -> CartPage:
        inputs = self.locator.resolve_all(self.QUANTITY_INPUTS)
        if index >= len(inputs):
            raise IndexError(f"cart has {len(inputs)} quantity inputs, no index {index}")
        self.actions.fill(inputs[index], str(quantity), description=f"cart quantity[{index}]")
        return self

    def set_all_quantities(self, quantity: int) -> CartPage:
        inputs = self.locator.resolve_all(self.QUANTITY_INPUTS)
        for index, field in enumerate(inputs):
            self.actions.fill(field, str(quantity), description=f"cart quantity[{index}]")
        return self

    def update(self) -> CartPage:
        """Submit the quantity form and wait for the recalculated cart."""
        self.click(self.UPDATE_BUTTON, state="attached")
        self.settle()
        return self

    def get_totals(self) -> dict[str, MoneyAmount]:
        """Totals block as {label: amount}, e.g. {"Sub-Total": ..., "Total": ...}."""

        totals: dict[str, MoneyAmount] = {}
        for row in self.locator.resolve_all(self.TOTAL_ROWS, timeout_ms=0, required=False):
            cells = row.locator("td")
            if cells.count() < 2:
                continue
            label = normalize_whitespace(cells.first.text_content()).rstrip(":")
            amount = parse_money(cells.last.text_content())
            if label and amount is not None:
                totals[label] = amount
        return totals

    def get_total(self) -> MoneyAmount | None:
        """Grand total, or None when the totals block could not be read."""
        return self.get_totals().get("Total")

    def verify_line_totals(self, tolerance: float = LINE_TOTAL_TOLERANCE) -> list[LineTotalMismatch]:
        return line_total_mismatches(self.line_items(), tolerance)

    def proceed_to_checkout(self) -> CartPage:
        try:
            self.click(self.CHECKOUT_BUTTON, state="visible")
            self.settle()
        except (ActionFailed, LocatorTimeout):
            LOGGER.warning("checkout_button_fallback", extra={"url": self.url})
            self.navigate(ROUTES["checkout"])
        return self
