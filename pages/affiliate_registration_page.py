from __future__ import annotations

import logging

from config import ROUTES, route_of
from pages.base_page import BasePage
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED
from services.user_data import AffiliateDetails

LOGGER = logging.getLogger("qa.pages.affiliate")

ALREADY_AFFILIATE_MARKERS = (
    "already registered",
    "already an affiliate",
    "you already have an affiliate account",
)
AFFILIATE_ROUTES = {"account/affiliate", "account/tracking"}
REGISTERED_ROUTES = {"account/success", "account/account", "account/affiliate"}


class AffiliateRegistrationPage(BasePage):
    """Affiliate sign-up form of a logged-in customer."""

    READY = NETWORK_SETTLED

    COMPANY = LocatorSpec.of("affiliate company", "#input-company", "input[name='company']")
    WEBSITE = LocatorSpec.of("affiliate website", "#input-website", "input[name='website']")
    TAX_ID = LocatorSpec.of("affiliate tax id", "#input-tax", "input[name='tax']")
    PAYMENT_CHEQUE = LocatorSpec.of("affiliate payment cheque", "input[name='payment'][value='cheque']", "input[value='cheque']")
    PAYMENT_PAYPAL = LocatorSpec.of("affiliate payment paypal", "input[name='payment'][value='paypal']", "input[value='paypal']")
    CHEQUE_PAYEE = LocatorSpec.of("affiliate cheque payee", "#input-cheque", "input[name='cheque']")
    PAYPAL_EMAIL = LocatorSpec.of("affiliate paypal email", "#input-paypal", "input[name='paypal']")
    AGREE = LocatorSpec.of("affiliate terms", "#input-agree", "input[name='agree']")
    SUBMIT = LocatorSpec.of("affiliate continue", "#content input[type='submit']", "#content button[type='submit']")
    SUCCESS = LocatorSpec.of("affiliate success", ".alert-success")
    ERROR = LocatorSpec.of("affiliate error", "#content .alert-danger", ".alert-danger", "#content .text-danger")

    def open(self) -> AffiliateRegistrationPage:
        self.navigate(ROUTES["affiliate_add"])
        return self

    def is_already_affiliate(self) -> bool:
        """True when the storefront redirected away from the form or says so in the body."""
        if route_of(self.url) in AFFILIATE_ROUTES:
            return True
        content = self.query(self.page.content, "", event="affiliate_content_unreadable").lower()
        return any(marker in content for marker in ALREADY_AFFILIATE_MARKERS)

    def register_as_affiliate(self, details: AffiliateDetails | None = None) -> AffiliateRegistrationPage:
        details = details or AffiliateDetails()
        if self.is_visible(self.COMPANY):
            self.fill(self.COMPANY, details.company)
        if self.is_visible(self.WEBSITE):
            self.fill(self.WEBSITE, details.website)
        if self.is_visible(self.TAX_ID):
            self.fill(self.TAX_ID, details.tax_id)

        if details.payment_method == "paypal":
            self.check(self.PAYMENT_PAYPAL)
            if self.wait_until(lambda: self.is_visible(self.PAYPAL_EMAIL), description="paypal email shown"):
                self.fill(self.PAYPAL_EMAIL, details.paypal_email)
        else:
            self.check(self.PAYMENT_CHEQUE)
            if self.wait_until(lambda: self.is_visible(self.CHEQUE_PAYEE), description="cheque payee shown"):
                self.fill(self.CHEQUE_PAYEE, details.cheque_payee)

        if self.get_count(self.AGREE):
            self.check(self.AGREE)
        else:
            LOGGER.info("affiliate_terms_absent", extra={"url": self.url})
        self.click(self.SUBMIT)
        self.settle()
        return self

    def is_registration_successful(self) -> bool:
        if route_of(self.url) in REGISTERED_ROUTES:
            return True
        return self.is_visible(self.SUCCESS, timeout_ms=min(self.timeout_ms, 3_000))

    def error_message(self) -> str:
        return self.query(lambda: self.get_text(self.ERROR, timeout_ms=3_000), "", event="affiliate_error_missing")
