from __future__ import annotations

import logging

from config import ROUTES
from pages.base_page import BasePage
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED
from services.user_data import AccountInformation

LOGGER = logging.getLogger("qa.pages.account")


class EditAccountPage(BasePage):
    """The "My Account Information" form: name, email, telephone."""

    READY = NETWORK_SETTLED

    FIRSTNAME = LocatorSpec.of("account first name", "#input-firstname", "input[name='firstname']")
    LASTNAME = LocatorSpec.of("account last name", "#input-lastname", "input[name='lastname']")
    EMAIL = LocatorSpec.of("account email", "#input-email", "input[name='email']")
    TELEPHONE = LocatorSpec.of("account telephone", "#input-telephone", "input[name='telephone']")
    SUBMIT = LocatorSpec.of(
        "account continue",
        "#content input[type='submit'][value='Continue']",
        "#content button[type='submit']",
    )
    SUCCESS = LocatorSpec.of("account update success", ".alert-success")
    FIELD_ERRORS = LocatorSpec.of("account field errors", "#content .text-danger", "#content .invalid-feedback")

    def open(self) -> EditAccountPage:
        self.navigate(ROUTES["edit_account"])
        self.wait_for(self.FIRSTNAME)
        return self

    def update(self, info: AccountInformation) -> EditAccountPage:
        self.fill(self.FIRSTNAME, info.firstname)
        self.fill(self.LASTNAME, info.lastname)
        self.fill(self.EMAIL, info.email)
        self.fill(self.TELEPHONE, info.telephone)
        self.click(self.SUBMIT)
        self.settle()
        return self

    def is_update_successful(self) -> bool:
        return not self.texts(self.FIELD_ERRORS) and self.is_visible(
            self.SUCCESS, timeout_ms=min(self.timeout_ms, 5_000)
        )

    def current_information(self) -> AccountInformation:
        """Values the form is showing now; raises LocatorTimeout when it is not on screen."""
        return AccountInformation(
            firstname=self._value(self.FIRSTNAME),
            lastname=self._value(self.LASTNAME),
            email=self._value(self.EMAIL),
            telephone=self._value(self.TELEPHONE),
        )

    def mismatches(self, expected: AccountInformation) -> list[str]:
        """Names of fields whose shown value differs from ``expected``."""
        current = self.current_information()
        differing = [
            field
            for field in ("firstname", "lastname", "email", "telephone")
            if getattr(current, field) != getattr(expected, field)
        ]
        if differing:
            LOGGER.info("account_information_mismatch", extra={"fields": differing})
        return differing

    def _value(self, spec: LocatorSpec) -> str:
        return self.wait_for(spec, state="attached").input_value()
