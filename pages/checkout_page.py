"""Checkout as a bounded state machine.

The storefront renders checkout either as collapsible panels (address, shipping,
payment, confirm) or as one long form followed by a confirm page. Both are
driven the same way: detect the current step from what is on screen, do that
step's work, click the next control, repeat until the order is confirmed.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable

from config import ROUTES, is_route
from pages.base_page import BasePage
from qa_core.errors import CheckoutBounced, CheckoutIncomplete
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED
from services.user_data import Address, random_address

LOGGER = logging.getLogger("qa.pages.checkout")

DEFAULT_MAX_ITERATIONS = 10


class CheckoutStep(enum.Enum):
    ADDRESS_ENTRY = "address_entry"
    SHIPPING_METHOD = "shipping_method"
    PAYMENT_METHOD = "payment_method"
    REVIEW = "review"
    CONFIRMED = "confirmed"
    CART = "cart"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CheckoutOutcome:
    step: CheckoutStep
    iterations: int
    history: tuple[CheckoutStep, ...]


def drive_checkout(
    detect: Callable[[], CheckoutStep],
    advance: Callable[[CheckoutStep], None],
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> CheckoutOutcome:
    """Advance until CONFIRMED, at most ``max_iterations`` times.

    Landing on the cart means the storefront rejected something upstream
    (stock, address validation) and raises CheckoutBounced instead of retrying.
    Running out of iterations raises CheckoutIncomplete.
    """

    if max_iterations < 1:
        raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")

    history: list[CheckoutStep] = []
    for iteration in range(max_iterations + 1):
        step = detect()
        history.append(step)
        LOGGER.info("checkout_step", extra={"step": step.value, "iteration": iteration})
        if step is CheckoutStep.CONFIRMED:
            return CheckoutOutcome(step=step, iterations=iteration, history=tuple(history))
        if step is CheckoutStep.CART:
            raise CheckoutBounced(f"checkout bounced back to the cart after {_trail(history)}")
        if iteration == max_iterations:
            break
        advance(step)

    raise CheckoutIncomplete(
        f"checkout did not complete within {max_iterations} iterations; steps: {_trail(history)}"
    )


def _trail(history: list[CheckoutStep]) -> str:
    return " -> ".join(step.value for step in history)


class CheckoutPage(BasePage):
    READY = NETWORK_SETTLED

    FIRSTNAME = LocatorSpec.of("checkout first name", "#input-payment-firstname", "input[name='firstname']")
    LASTNAME = LocatorSpec.of("checkout last name", "#input-payment-lastname", "input[name='lastname']")
    COMPANY = LocatorSpec.of("checkout company", "#input-payment-company", "input[name='company']")
    ADDRESS_1 = LocatorSpec.of("checkout address 1", "#input-payment-address-1", "input[name='address_1']")
    ADDRESS_2 = LocatorSpec.of("checkout address 2", "#input-payment-address-2", "input[name='address_2']")
    CITY = LocatorSpec.of("checkout city", "#input-payment-city", "input[name='city']")
    POSTCODE = LocatorSpec.of("checkout postcode", "#input-payment-postcode", "input[name='postcode']")
    COUNTRY = LocatorSpec.of("checkout country", "#input-payment-country", "select[name='country_id']")
    ZONE = LocatorSpec.of("checkout region", "#input-payment-zone", "select[name='zone_id']")

    SHIPPING_METHODS = LocatorSpec.of("shipping methods", "input[name='shipping_method']")
    PAYMENT_METHODS = LocatorSpec.of("payment methods", "input[name='payment_method']")
    TERMS = LocatorSpec.of(
        "checkout terms",
        "#input-agree",
        "input[name='agree']",
        "input[type='checkbox'][name*='agree']",
    )
    CONTINUE = LocatorSpec.of(
        "checkout continue",
        "#button-save",
        "#button-payment-address",
        "#button-shipping-address",
        "#button-shipping-method",
        "#button-payment-method",
        "input[value='Continue']",
        "#content button:has-text('Continue')",
    )
    CONFIRM = LocatorSpec.of(
        "confirm order",
        "#button-confirm",
        "button:has-text('Confirm Order')",
        "input[value='Confirm Order']",
    )
    SUCCESS_HEADING = LocatorSpec.of(
        "order placed heading",
        "#content h1:text-matches('order.*(placed|processed|confirmed)', 'i')",
        "h1:text-matches('success', 'i')",
    )
    SUCCESS_MESSAGE = LocatorSpec.of(
        "order confirmation message",
        "#content .alert-success",
        "#content p:text-matches('order has been', 'i')",
    )

    def open(self) -> CheckoutPage:
        self.navigate(ROUTES["checkout"])
        return self

    def detect_step(self) -> CheckoutStep:
        """Classify the current screen; never raises."""

        url = self.url
        if is_route(url, "checkout_success") or self.is_visible(self.SUCCESS_HEADING):
            return CheckoutStep.CONFIRMED
        if is_route(url, "cart"):
            return CheckoutStep.CART
        if self.is_visible(self.CONFIRM):
            return CheckoutStep.REVIEW
        if self.is_visible(self.ADDRESS_1) and not self._field_value(self.ADDRESS_1):
            return CheckoutStep.ADDRESS_ENTRY
        if self.is_visible(self.SHIPPING_METHODS) and not self._any_checked(self.SHIPPING_METHODS):
            return CheckoutStep.SHIPPING_METHOD
        if self.is_visible(self.PAYMENT_METHODS) or self.is_visible(self.TERMS):
            return CheckoutStep.PAYMENT_METHOD
        return CheckoutStep.UNKNOWN

    def fill_address(self, address: Address) -> CheckoutPage:
        self.fill(self.FIRSTNAME, address.firstname)
        self.fill(self.LASTNAME, address.lastname)
        if self.is_visible(self.COMPANY):
            self.fill(self.COMPANY, address.company)
        self.fill(self.ADDRESS_1, address.address_1)
        if self.is_visible(self.ADDRESS_2):
            self.fill(self.ADDRESS_2, address.address_2)
        self.fill(self.CITY, address.city)
        self.fill(self.POSTCODE, address.postcode)
        self.actions.select(self.resolve(self.COUNTRY, state="visible"), value=address.country_id)
        self._select_zone(address.zone_label)
        return self

    def _select_zone(self, zone_label: str | None) -> None:
        zone = self.resolve(self.ZONE, state="visible")
        options = zone.handle.locator("option")
        # Regions are reloaded by AJAX after the country changes.
        if not self.wait_until(lambda: options.count() > 1, description="checkout regions loaded"):
            LOGGER.warning("checkout_regions_missing", extra={"url": self.url})
            return
        if zone_label is not None:
            self.actions.select(zone, label=zone_label)
            return
        value = options.nth(1).get_attribute("value") or ""
        self.actions.select(zone, value=value)

    def complete_checkout(
        self,
        address: Address | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> CheckoutOutcome:
        """Drive checkout to the confirmation page.

        ``address`` is used only if the storefront asks for one; a random
        address is generated when it does and none was given.
        """

        self.settle()

        def advance(step: CheckoutStep) -> None:
            if step is CheckoutStep.ADDRESS_ENTRY:
                self.fill_address(address or random_address())
            elif step is CheckoutStep.SHIPPING_METHOD:
                self.check(self.SHIPPING_METHODS)
            elif step is CheckoutStep.PAYMENT_METHOD:
                if not self._any_checked(self.PAYMENT_METHODS) and self.is_visible(self.PAYMENT_METHODS):
                    self.check(self.PAYMENT_METHODS)
                if self.is_visible(self.TERMS) and not self._any_checked(self.TERMS):
                    self.check(self.TERMS)
            elif step is CheckoutStep.REVIEW:
                self.click(self.CONFIRM)
                self.settle()
                return
            if self.is_visible(self.CONTINUE):
                self.click(self.CONTINUE)
            self.settle()

        outcome = drive_checkout(self.detect_step, advance, max_iterations)
        LOGGER.info(
            "checkout_completed",
            extra={"iterations": outcome.iterations, "steps": [step.value for step in outcome.history]},
        )
        return outcome

    def is_order_placed(self) -> bool:
        return is_route(self.url, "checkout_success") or self.is_visible(
            self.SUCCESS_HEADING, timeout_ms=self.timeout_ms
        )

    def confirmation_message(self) -> str:
        return self.query(lambda: self.get_text(self.SUCCESS_MESSAGE), "", event="checkout_message_missing")

    def _field_value(self, spec: LocatorSpec) -> str:
        def read() -> str:
            return self.resolve(spec, state="attached", timeout_ms=0).handle.input_value()

        return self.query(read, "", event="checkout_field_unreadable").strip()

    def _any_checked(self, spec: LocatorSpec) -> bool:
        handles = self.locator.resolve_all(spec, timeout_ms=0, required=False)
        return any(self.query(handle.is_checked, False, event="checkout_radio_unreadable") for handle in handles)
