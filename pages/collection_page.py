"""Shared behaviour of list-like pages: cart, wishlist, and product comparison.

A collection page is EMPTY, POPULATED, or UNKNOWN. UNKNOWN means neither the
empty-state message nor any item showed up in time; it is retried once by
re-navigating and otherwise surfaced, never treated as EMPTY.
"""

from __future__ import annotations

import enum
import logging

from config import ROUTES
from pages.base_page import BasePage
from qa_core.actions import onclick_handler
from qa_core.errors import ActionFailed, CollectionStateUnknown
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED
from qa_core.verification import ProductVerification, verify_products

LOGGER = logging.getLogger("qa.pages.collection")

MAX_CLEAR_ATTEMPTS = 20


class CollectionState(enum.Enum):
    EMPTY = "empty"
    POPULATED = "populated"
    UNKNOWN = "unknown"


class CollectionPage(BasePage):
    """Base for pages that list products and can remove them one by one."""

    READY = NETWORK_SETTLED
    ROUTE = ""
    ITEM_NAMES: LocatorSpec
    EMPTY_MESSAGE: LocatorSpec
    REMOVE_BUTTONS: LocatorSpec
    # Page function the remove control calls, used when clicking it fails.
    REMOVE_FUNCTION: str | None = None

    def open(self) -> CollectionPage:
        self.navigate(ROUTES[self.ROUTE])
        return self

    def state(self, timeout_ms: int | None = None) -> CollectionState:
        """Classify the page, polling until it shows items or the empty-state message."""

        seen: list[CollectionState] = []

        def classified() -> bool:
            if self.get_count(self.ITEM_NAMES) > 0 and self.item_names():
                seen.append(CollectionState.POPULATED)
                return True
            if self.is_visible(self.EMPTY_MESSAGE):
                seen.append(CollectionState.EMPTY)
                return True
            return False

        if self.wait_until(classified, timeout_ms, description=f"{type(self).__name__} state"):
            return seen[-1]
        return CollectionState.UNKNOWN

    def is_empty(self) -> bool:
        """True only for a definite EMPTY; UNKNOWN counts as not empty."""
        return self.state() is CollectionState.EMPTY

    def item_names(self) -> list[str]:
        return self.texts(self.ITEM_NAMES)

    def item_count(self) -> int:
        return len(self.item_names())

    def verify_products(self, expected: list[str]) -> ProductVerification:
        return verify_products(expected, self.item_names())

    def remove_at(self, index: int) -> CollectionPage:
        buttons = self.locator.resolve_all(self.REMOVE_BUTTONS)
        if index >= len(buttons):
            raise IndexError(f"{self.REMOVE_BUTTONS.name}: no item at index {index} (have {len(buttons)})")
        self.actions.click(
            buttons[index],
            description=f"{self.REMOVE_BUTTONS.name}[{index}]",
            handler=onclick_handler(self.REMOVE_FUNCTION) if self.REMOVE_FUNCTION else None,
        )
        self.settle()
        return self

    def clear(self) -> int:
        """Remove every item and return how many were removed.

        Clearing an already empty page is a no-op that returns 0.
        """

        self.open()
        state = self.state()
        if state is CollectionState.UNKNOWN:
            LOGGER.warning("collection_state_unknown_retry", extra={"page": type(self).__name__})
            self.open()
            state = self.state()
        if state is CollectionState.UNKNOWN:
            raise CollectionStateUnknown(
                f"{type(self).__name__} showed neither items nor the empty message at {self.url}"
            )
        if state is CollectionState.EMPTY:
            LOGGER.info("collection_already_empty", extra={"page": type(self).__name__})
            return 0

        initial = self.item_count()
        for _ in range(MAX_CLEAR_ATTEMPTS):
            before = self.item_count()
            if before == 0:
                break
            if not self.locator.resolve_all(self.REMOVE_BUTTONS, required=False):
                break
            self.remove_at(0)
            self.wait_until(
                lambda: self.item_count() < before,
                description=f"{type(self).__name__} item removed",
            )

        remaining = self.item_count()
        if remaining:
            raise ActionFailed(
                "clear",
                type(self).__name__,
                [("remove", f"{remaining} of {initial} items left after {MAX_CLEAR_ATTEMPTS} attempts")],
            )
        LOGGER.info("collection_cleared", extra={"page": type(self).__name__, "removed": initial})
        return initial
