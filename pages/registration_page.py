"""Customer registration form."""

from __future__ import annotations

from config import ROUTES, is_route
from pages.base_page import BasePage
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED
from services.user_data import NewUser

# Any of these in the error text means the email is taken.
DUPLICATE_EMAIL_KEYWORDS = ("already", "registered", "exists")


class RegistrationPage(BasePage):
    FIRSTNAME = LocatorSpec.of("register first name", "#input-firstname", "input[name='firstname']")
    LASTNAME = LocatorSpec.of("register last name", "#input-lastname", "input[name='lastname']")
    EMAIL = LocatorSpec.of("register email", "#input-email", "input[name='email']")
    TELEPHONE = LocatorSpec.of("register telephone", "#input-telephone", "input[name='telephone']")
    PASSWORD = LocatorSpec.of("register password", "#input-password", "input[name='password']")
    CONFIRM = LocatorSpec.of("register confirm password", "#input-confirm", "input[name='confirm']")
    # Custom-styled controls: the input itself is covered by its label.
    NEWSLETTER_YES = LocatorSpec.of("newsletter yes", "#input-newsletter-yes", "input[name='newsletter'][value='1']")
    NEWSLETTER_NO = LocatorSpec.of("newsletter no", "#input-newsletter-no", "input[name='newsletter'][value='0']")
    AGREE = LocatorSpec.of("privacy policy", "#input-agree", "input[name='agree']")
    SUBMIT = LocatorSpec.of(
        "register continue",
        "input[type='submit'][value='Continue']",
        "#content form button[type='submit']",
    )
    ERROR = LocatorSpec.of(
        "registration error",
        "#account-register .alert-danger",
        ".alert-danger",
        ".alert-warning",
        "#input-email + .text-danger",
        "#error-email",
    )
    HEADING = LocatorSpec.of("page heading", "#content h1", "h1")
    SUCCESS_HEADING = LocatorSpec.of("account created heading", "h1:has-text('Your Account Has Been Created')")

    def open(self) -> RegistrationPage:
        self.navigate(ROUTES["register"])
        self.wait_for(self.FIRSTNAME)
        return self

    def fill_form(self, user: NewUser) -> RegistrationPage:
        self.fill(self.FIRSTNAME, user.firstname)
        self.fill(self.LASTNAME, user.lastname)
        self.fill(self.EMAIL, user.email)
        self.fill(self.TELEPHONE, user.telephone)
        self.fill(self.PASSWORD, user.password)
        self.fill(self.CONFIRM, user.password)
        return self

    def select_newsletter(self, subscribe: bool = False) -> RegistrationPage:
        self.check(self.NEWSLETTER_YES if subscribe else self.NEWSLETTER_NO)
        return self

    def accept_privacy_policy(self) -> RegistrationPage:
        self.check(self.AGREE)
        return self

    def submit(self) -> RegistrationPage:
        self.click(self.SUBMIT)
        self.settle(NETWORK_SETTLED)
        return self

    def register(self, user: NewUser, subscribe: bool = False) -> RegistrationPage:
        return self.fill_form(user).select_newsletter(subscribe).accept_privacy_policy().submit()

    def is_registration_successful(self) -> bool:
        return is_route(self.url, "register_success") or self.get_count(self.SUCCESS_HEADING) > 0

    def error_message(self) -> str:
        return self.query(lambda: self.get_text(self.ERROR), "", event="registration_error_missing")

    def is_error_displayed(self) -> bool:
        return self.is_visible(self.ERROR, timeout_ms=self.timeout_ms)

    def is_duplicate_email_error(self) -> bool:
        message = self.error_message().lower()
        return any(keyword in message for keyword in DUPLICATE_EMAIL_KEYWORDS)

    def heading(self) -> str:
        return self.get_text(self.HEADING)
