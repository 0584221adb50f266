"""Product comparison page."""

from __future__ import annotations

from pages.collection_page import CollectionPage
from qa_core.locators import LocatorSpec


class ComparePage(CollectionPage):
    """Comparison table; a product shows up once per column, names are deduplicated."""

    ROUTE = "compare"
    HEADING = LocatorSpec.of(
        "compare heading",
        "#content h1:text-matches('comparison', 'i')",
        "h1:has-text('Product Comparison')",
    )
    ITEM_NAMES = LocatorSpec.of(
        "compared product names",
        "#content table a[href*='product/product']",
        "#content table td a[href*='product_id']",
    )
    EMPTY_MESSAGE = LocatorSpec.of(
        "empty compare message",
        "#content p:text-matches('not chosen any products', 'i')",
        "#content :text-matches('not chosen any products', 'i')",
    )
    REMOVE_BUTTONS = LocatorSpec.of(
        "compare remove links",
        "#content table a[href*='remove=']",
        "#content table a.btn-danger",
    )
    ADD_TO_CART_BUTTONS = LocatorSpec.of(
        "compare add to cart buttons",
        "#content table input[value='Add to Cart']",
        "#content table button:has-text('Add to Cart')",
    )

    def open(self) -> ComparePage:
        super().open()
        return self

    def is_displayed(self) -> bool:
        """True when the comparison heading is on screen."""
        heading = self.query(lambda: self.get_text(self.HEADING), "", event="compare_heading_missing")
        return "compar" in heading.lower()

    def item_names(self) -> list[str]:
        unique: list[str] = []
        for name in super().item_names():
            if name not in unique:
                unique.append(name)
        return unique

    def contains(self, product_name: str) -> bool:
        return self.verify_products([product_name]).all_found

    def add_to_cart(self, index: int = 0) -> ComparePage:
        buttons = self.locator.resolve_all(self.ADD_TO_CART_BUTTONS)
        if index >= len(buttons):
            raise IndexError(f"compare table has {len(buttons)} add-to-cart buttons, no index {index}")
        self.actions.click(buttons[index], description=f"{self.ADD_TO_CART_BUTTONS.name}[{index}]")
        self.settle()
        return self
