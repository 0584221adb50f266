from __future__ import annotations

import logging

from config import ROUTES, is_route
from pages.base_page import BasePage
from qa_core.errors import ActionFailed, LocatorTimeout
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED

LOGGER = logging.getLogger("qa.pages.password")


class ChangePasswordPage(BasePage):
    """Account password form; a successful change redirects to the account page."""

    READY = NETWORK_SETTLED

    SIDEBAR_LINK = LocatorSpec.of(
        "sidebar password link",
        "#column-right a[href*='route=account/password']",
        "#column-right a:has-text('Password')",
    )
    PASSWORD = LocatorSpec.of("new password", "#input-password", "input[name='password']")
    CONFIRM = LocatorSpec.of("confirm password", "#input-confirm", "input[name='confirm']")
    SUBMIT = LocatorSpec.of(
        "password continue",
        "#content input[type='submit'][value='Continue']",
        "#content button[type='submit']",
    )
    SUCCESS = LocatorSpec.of("password success", "#account-account .alert-success", ".alert-success")
    FIELD_ERRORS = LocatorSpec.of("password field errors", "#content .text-danger", "#content .invalid-feedback")

    def open(self) -> ChangePasswordPage:
        self.navigate(ROUTES["password"])
        self.wait_for(self.PASSWORD)
        return self

    def open_from_sidebar(self) -> ChangePasswordPage:
        """Follow the account sidebar link; go to the route directly if it is missing."""
        try:
            self.click(self.SIDEBAR_LINK, state="visible")
            self.settle()
            self.wait_for(self.PASSWORD)
        except (ActionFailed, LocatorTimeout):
            LOGGER.warning("password_sidebar_fallback", extra={"url": self.url})
            self.open()
        return self

    def change_password(self, new_password: str, confirm: str | None = None) -> ChangePasswordPage:
        self.fill(self.PASSWORD, new_password)
        self.fill(self.CONFIRM, new_password if confirm is None else confirm)
        self.click(self.SUBMIT)
        self.settle()
        return self

    def is_password_change_successful(self) -> bool:
        if self.field_errors():
            return False
        if not is_route(self.url, "account"):
            return False
        message = self.query(
            lambda: self.get_text(self.SUCCESS, timeout_ms=min(self.timeout_ms, 5_000)),
            "",
            event="password_success_missing",
        ).lower()
        return "success" in message or "password" in message

    def field_errors(self) -> list[str]:
        return self.texts(self.FIELD_ERRORS)
