from __future__ import annotations

from pages.collection_page import CollectionPage
from qa_core.actions import onclick_handler
from qa_core.locators import LocatorSpec


class WishlistPage(CollectionPage):
    """Saved products of the logged-in account."""

    ROUTE = "wishlist"
    HEADING = LocatorSpec.of(
        "wishlist heading",
        "#content h1:text-matches('wish ?list', 'i')",
        "h2:text-matches('wish ?list', 'i')",
    )
    ITEM_NAMES = LocatorSpec.of(
        "wishlist product names",
        "#content table tbody tr td.text-left a[href*='product']",
        "#content table tbody tr td a[href*='product_id']",
    )
    EMPTY_MESSAGE = LocatorSpec.of(
        "empty wishlist message",
        "#content p:text-matches('wish list is empty|no items|no products', 'i')",
        "#content :text-matches('wish list is empty', 'i')",
    )
    REMOVE_BUTTONS = LocatorSpec.of(
        "wishlist remove buttons",
        "#content table a[href*='remove=']",
        "#content table a.btn-danger",
        "#content table a[data-original-title='Remove']",
    )
    ADD_TO_CART_BUTTONS = LocatorSpec.of(
        "wishlist add to cart buttons",
        "#content table button[onclick*='cart.add']",
        "#content table button[data-original-title='Add to Cart']",
        "#content table button:has(i.fa-shopping-cart)",
    )

    def open(self) -> WishlistPage:
        super().open()
        return self

    def is_heading_visible(self) -> bool:
        return self.is_visible(self.HEADING, timeout_ms=self.timeout_ms)

    def add_to_cart(self, index: int = 0) -> WishlistPage:
        buttons = self.locator.resolve_all(self.ADD_TO_CART_BUTTONS)
        if index >= len(buttons):
            raise IndexError(f"wishlist has {len(buttons)} add-to-cart buttons, no index {index}")
        self.actions.click(
            buttons[index],
            description=f"{self.ADD_TO_CART_BUTTONS.name}[{index}]",
            handler=onclick_handler("cart.add"),
        )
        self.settle()
        return self
