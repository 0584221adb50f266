"""Affiliate tracking code and tracked product links."""

from __future__ import annotations

import logging
import re
from urllib.parse import parse_qs, parse_qsl, urlencode, urlsplit, urlunsplit

from config import ROUTES, route_of
from pages.base_page import BasePage
from qa_core.errors import ActionFailed, LocatorTimeout
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED

LOGGER = logging.getLogger("qa.pages.affiliate")

DEFAULT_CATEGORY_PATH = "18"
FALLBACK_PRODUCT_ID = 40
_TRACKING_IN_TEXT = re.compile(r"tracking=([A-Za-z0-9]+)")


def with_tracking(url: str, code: str) -> str:
    """``url`` with its ``tracking`` parameter set to ``code``; other parameters are kept."""
    parts = urlsplit(url)
    query = [(key, value) for key, value in parse_qsl(parts.query, keep_blank_values=True) if key != "tracking"]
    query.append(("tracking", code))
    return urlunsplit(parts._replace(query=urlencode(query, safe="/")))


def tracking_code_in(text: str) -> str | None:
    match = _TRACKING_IN_TEXT.search(text)
    return match.group(1) if match else None


class AffiliateTrackingPage(BasePage):
    READY = NETWORK_SETTLED

    SIDEBAR_LINK = LocatorSpec.of(
        "sidebar tracking link",
        "#column-right a[href*='route=account/tracking']",
        "a[href*='route=account/tracking']",
    )
    TRACKING_CODE = LocatorSpec.of("affiliate tracking code", "#input-code", "#content input[name='code']")
    GENERATED_LINK = LocatorSpec.of("generated tracking link", "#input-link", "#content textarea[name='link']")
    PRODUCT_LINKS = LocatorSpec.of(
        "category product links",
        "#content .product-thumb h4 a[href*='product_id']",
        "#content a[href*='product_id']",
    )
    PRODUCT_TITLE = LocatorSpec.of("tracked product title", "#content h1", "h1")
    PRODUCT_PRICE = LocatorSpec.of("tracked product price", "#content .price-new", "#content .price", "h2.price")

    def open(self) -> AffiliateTrackingPage:
        """Follow the account sidebar link; go to the route directly if it is missing."""
        try:
            self.click(self.SIDEBAR_LINK, state="visible")
            self.settle()
        except (ActionFailed, LocatorTimeout):
            LOGGER.info("tracking_sidebar_fallback", extra={"url": self.url})
            self.navigate(ROUTES["affiliate_tracking"])
        return self

    def tracking_code(self) -> str | None:
        """The affiliate's code from the read-only input, else from a tracking link on the page."""

        def from_input() -> str:
            handle = self.wait_for(self.TRACKING_CODE, state="attached", timeout_ms=min(self.timeout_ms, 3_000))
            return handle.input_value()

        code = self.query(from_input, "", event="tracking_code_input_missing").strip()
        if code:
            return code
        link = self.query(
            lambda: self.wait_for(self.GENERATED_LINK, state="attached", timeout_ms=0).input_value(),
            "",
            event="tracking_link_missing",
        )
        if tracking_code_in(link):
            return tracking_code_in(link)
        content = self.query(self.page.content, "", event="tracking_content_unreadable")
        return tracking_code_in(content)

    def any_product_url(self, category_path: str = DEFAULT_CATEGORY_PATH) -> str:
        self.navigate(ROUTES["category"].format(path=category_path))
        links = self.locator.resolve_all(self.PRODUCT_LINKS, required=False)
        href = None
        if links:
            href = self.query(lambda: links[0].get_attribute("href"), None, event="product_link_unreadable")
        if not href:
            LOGGER.warning("tracking_product_fallback", extra={"category": category_path})
            return f"{self.base_url}{ROUTES['product'].format(product_id=FALLBACK_PRODUCT_ID)}"
        return href

    def open_tracked(self, url: str) -> AffiliateTrackingPage:
        self.navigate(url)
        return self

    def is_product_displayed(self) -> bool:
        if route_of(self.url) != "product/product":
            return False
        return bool(self.query(lambda: self.get_text(self.PRODUCT_TITLE), "", event="tracked_title_missing"))

    def is_price_visible(self) -> bool:
        return self.is_visible(self.PRODUCT_PRICE, timeout_ms=min(self.timeout_ms, 5_000))

    def has_tracking(self, code: str) -> bool:
        return parse_qs(urlsplit(self.url).query).get("tracking") == [code]
