from __future__ import annotations

from config import ROUTES, is_route
from pages.base_page import BasePage
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED
from services.user_data import UserCredentials


class LoginPage(BasePage):
    """Account login form."""

    EMAIL = LocatorSpec.of("login email", "#input-email", "input[name='email']")
    PASSWORD = LocatorSpec.of("login password", "#input-password", "input[name='password']")
    SUBMIT = LocatorSpec.of(
        "login button",
        "input[type='submit'][value='Login']",
        "#content form button[type='submit']",
        "button:has-text('Login')",
    )
    ERROR = LocatorSpec.of("login error", "#account-login .alert-danger", ".alert-danger")

    def open(self) -> LoginPage:
        self.navigate(ROUTES["login"])
        self.wait_for(self.EMAIL)
        return self

    def login(self, credentials: UserCredentials) -> LoginPage:
        self.fill(self.EMAIL, credentials.email)
        self.fill(self.PASSWORD, credentials.password)
        self.click(self.SUBMIT)
        self.settle(NETWORK_SETTLED)
        return self

    def is_login_successful(self) -> bool:
        return is_route(self.url, "account")

    def error_message(self) -> str:
        return self.query(lambda: self.get_text(self.ERROR), "", event="login_error_missing")

    def has_error(self, expected: str) -> bool:
        return expected.lower() in self.error_message().lower()
