from __future__ import annotations

import logging

from config import ROUTES
from pages.base_page import BasePage
from qa_core.errors import ActionFailed, LocatorTimeout
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED

LOGGER = logging.getLogger("qa.pages.account")


class MyAccountPage(BasePage):
    """Account landing page and the header account menu."""

    READY = NETWORK_SETTLED

    ACCOUNT_MENU = LocatorSpec.of(
        "my account menu",
        "#widget-navbar-217834 a.dropdown-toggle:has-text('My account')",
        "a.dropdown-toggle:has-text('My account')",
    )
    LOGOUT_LINK = LocatorSpec.of(
        "logout link",
        "#widget-navbar-217834 a[href*='route=account/logout']",
        "a[href*='route=account/logout']",
        "#column-right a:has-text('Logout')",
    )
    ACCOUNT_HEADING = LocatorSpec.of("my account heading", "#content h2:has-text('My Account')")
    LOGOUT_HEADING = LocatorSpec.of("logout heading", "#content h1:has-text('Account Logout')", "h1:has-text('Logout')")

    def open(self) -> MyAccountPage:
        self.navigate(ROUTES["account"])
        return self

    def logout(self) -> MyAccountPage:
        """Log out through the header menu; go to the logout route if the menu fails."""
        try:
            menu = self.resolve(self.ACCOUNT_MENU, state="visible")
            self.query(menu.handle.hover, None, event="account_menu_hover_failed")
            self.click(self.LOGOUT_LINK, state="attached")
            self.settle()
        except (ActionFailed, LocatorTimeout):
            LOGGER.warning("logout_menu_fallback", extra={"url": self.url})
            self.navigate(ROUTES["logout"])
        return self

    def is_logout_successful(self) -> bool:
        heading = self.query(
            lambda: self.get_text(self.LOGOUT_HEADING), "", event="logout_heading_missing"
        )
        return "logout" in heading.lower()

    def is_logged_in(self) -> bool:
        """The header menu only links to logout for an authenticated session."""
        return self.get_count(self.LOGOUT_LINK) > 0
