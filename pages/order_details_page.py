"""Order history, a single order's details, and the product return form reached from it."""

from __future__ import annotations

import logging
from urllib.parse import parse_qs, urlsplit

from config import ROUTES, is_route
from pages.base_page import BasePage
from qa_core.errors import ActionFailed, LocatorTimeout
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED
from services.user_data import ReturnRequest

LOGGER = logging.getLogger("qa.pages.orders")


def order_id_from(url: str) -> str | None:
    values = parse_qs(urlsplit(url).query).get("order_id")
    return values[0] if values else None


class OrderDetailsPage(BasePage):
    READY = NETWORK_SETTLED

    VIEW_LINKS = LocatorSpec.of(
        "order view links",
        "#content a[href*='route=account/order/info']",
        "#content a[href*='order/info']",
    )
    NO_ORDERS = LocatorSpec.of(
        "no orders message",
        "#content p:text-matches('not made any previous orders|no orders', 'i')",
    )
    ITEM_NAMES = LocatorSpec.of(
        "ordered product names",
        "#content .table-responsive table tbody tr td.text-left:first-child",
        "#content table tbody td a[href*='product_id']",
    )
    RETURN_LINKS = LocatorSpec.of(
        "order return links",
        "#content a[href*='route=account/return/add']",
        "#content a[href*='return/add']",
    )

    RETURN_REASON_RADIOS = LocatorSpec.of("return reasons", "input[name='return_reason_id']")
    RETURN_REASON_SELECT = LocatorSpec.of("return reason select", "select[name='return_reason_id']")
    RETURN_OPENED = LocatorSpec.of("return opened", "input[name='opened']")
    RETURN_COMMENT = LocatorSpec.of("return comment", "#input-comment", "textarea[name='comment']")
    RETURN_AGREE = LocatorSpec.of("return policy agree", "input[name='agree']")
    RETURN_SUBMIT = LocatorSpec.of(
        "return submit",
        "#content input[type='submit']",
        "#content button[type='submit']",
    )
    RETURN_SUCCESS = LocatorSpec.of(
        "return submitted message",
        "#content p:text-matches('return request has been submitted|thank you', 'i')",
    )
    FIELD_ERRORS = LocatorSpec.of("return field errors", "#content .text-danger", "#content .invalid-feedback")

    @property
    def order_id(self) -> str | None:
        return order_id_from(self.url)

    def open_history(self) -> OrderDetailsPage:
        self.navigate(ROUTES["order_history"])
        return self

    def open(self, order_id: str | int) -> OrderDetailsPage:
        self.navigate(ROUTES["order_info"].format(order_id=order_id))
        return self

    def has_orders(self) -> bool:
        if self.get_count(self.VIEW_LINKS) > 0:
            return True
        self.wait_until(
            lambda: self.get_count(self.VIEW_LINKS) > 0 or self.is_visible(self.NO_ORDERS),
            description="order history rendered",
        )
        return self.get_count(self.VIEW_LINKS) > 0

    def view_most_recent_order(self) -> OrderDetailsPage:
        """History lists newest first, so the first view link is the latest order."""
        self.click(self.VIEW_LINKS)
        self.settle()
        return self

    def item_names(self) -> list[str]:
        return self.texts(self.ITEM_NAMES)

    def open_return_form(self, index: int = 0) -> OrderDetailsPage:
        """Follow the ``index``-th product's return link, or go to the return route for this order."""
        links = self.locator.resolve_all(self.RETURN_LINKS, timeout_ms=min(self.timeout_ms, 3_000), required=False)
        if index < len(links):
            try:
                self.actions.click(links[index], description=f"{self.RETURN_LINKS.name}[{index}]")
                self.settle()
                return self
            except ActionFailed:
                LOGGER.warning("return_link_failed", extra={"index": index, "url": self.url})
        order_id = self.order_id
        if order_id is None:
            raise LocatorTimeout(self.RETURN_LINKS.name, self.RETURN_LINKS.strategies, self.timeout_ms, "actionable")
        self.navigate(f"{ROUTES['return_add']}&order_id={order_id}")
        return self

    def fill_return_form(self, request: ReturnRequest) -> OrderDetailsPage:
        self._choose_reason(request.reason_id)
        opened = self.locator.resolve_all(self.RETURN_OPENED, timeout_ms=0, required=False)
        # Radios are ordered Yes, No.
        if len(opened) >= 2:
            self.actions.check(opened[0] if request.opened else opened[1])
        if request.comment and self.get_count(self.RETURN_COMMENT):
            self.fill(self.RETURN_COMMENT, request.comment)
        if self.get_count(self.RETURN_AGREE):
            self.check(self.RETURN_AGREE)
        return self

    def submit_return(self) -> OrderDetailsPage:
        self.click(self.RETURN_SUBMIT)
        self.settle()
        return self

    def request_return(self, request: ReturnRequest | None = None, index: int = 0) -> OrderDetailsPage:
        request = request or ReturnRequest()
        return self.open_return_form(index).fill_return_form(request).submit_return()

    def is_return_submitted(self) -> bool:
        if self.texts(self.FIELD_ERRORS):
            return False
        return is_route(self.url, "return_success") or self.is_visible(
            self.RETURN_SUCCESS, timeout_ms=min(self.timeout_ms, 5_000)
        )

    def _choose_reason(self, reason_id: str | None) -> None:
        if self.get_count(self.RETURN_REASON_SELECT):
            select = self.resolve(self.RETURN_REASON_SELECT, state="visible")
            if reason_id is None:
                # Option 0 is the "please select" placeholder.
                reason_id = select.handle.locator("option").nth(1).get_attribute("value") or ""
            self.actions.select(select, value=reason_id)
            return
        radios = self.locator.resolve_all(self.RETURN_REASON_RADIOS)
        if reason_id is None:
            self.actions.check(radios[0])
            return
        for radio in radios:
            if radio.get_attribute("value") == reason_id:
                self.actions.check(radio)
                return
        raise LookupError(f"no return reason with value {reason_id!r}; {len(radios)} offered")
