"""Address book: open the default entry (or a new one), fill it, save it."""

from __future__ import annotations

import logging

from config import ROUTES
from pages.base_page import BasePage
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED
from services.user_data import Address

LOGGER = logging.getLogger("qa.pages.address")

# Text inputs compared after a save; country and region are selects and vary by locale.
TEXT_FIELDS = ("firstname", "lastname", "company", "address_1", "address_2", "city", "postcode")


class EditAddressPage(BasePage):
    READY = NETWORK_SETTLED

    EDIT_LINKS = LocatorSpec.of(
        "address edit links",
        "#content table a[href*='route=account/address/edit']",
        "#content table a:has-text('Edit')",
    )
    NEW_ADDRESS = LocatorSpec.of(
        "new address button",
        "#content a[href*='route=account/address/add']",
        "#content a:has-text('New Address')",
    )
    FIELDS = {
        name: LocatorSpec.of(f"address {name}", f"#input-{name.replace('_', '-')}", f"input[name='{name}']")
        for name in TEXT_FIELDS
    }
    COUNTRY = LocatorSpec.of("address country", "#input-country", "select[name='country_id']")
    ZONE = LocatorSpec.of("address region", "#input-zone", "select[name='zone_id']")
    DEFAULT_YES = LocatorSpec.of("default address yes", "input[name='default'][value='1']")
    SUBMIT = LocatorSpec.of(
        "address continue",
        "#content input[type='submit'][value='Continue']",
        "#content button[type='submit']",
    )
    SUCCESS = LocatorSpec.of("address saved", ".alert-success")
    FIELD_ERRORS = LocatorSpec.of("address field errors", "#content .text-danger", "#content .invalid-feedback")

    def open(self) -> EditAddressPage:
        self.navigate(ROUTES["address_book"])
        return self

    def has_existing_address(self) -> bool:
        return self.get_count(self.EDIT_LINKS) > 0

    def open_address_form(self) -> EditAddressPage:
        """Edit the first entry in the book, or start a new one when the book is empty."""
        if self.has_existing_address():
            self.click(self.EDIT_LINKS)
        else:
            LOGGER.info("address_book_empty", extra={"url": self.url})
            self.click(self.NEW_ADDRESS)
        self.settle()
        self.wait_for(self.FIELDS["address_1"])
        return self

    def fill_address(self, address: Address, make_default: bool = False) -> EditAddressPage:
        for name in TEXT_FIELDS:
            spec = self.FIELDS[name]
            # Company and the second address line are optional on some themes.
            if name in ("company", "address_2") and not self.is_visible(spec):
                continue
            self.fill(spec, getattr(address, name))
        self.actions.select(self.resolve(self.COUNTRY, state="visible"), value=address.country_id)
        self._select_zone(address.zone_label)
        if make_default and self.get_count(self.DEFAULT_YES):
            self.check(self.DEFAULT_YES)
        return self

    def submit(self) -> EditAddressPage:
        self.click(self.SUBMIT)
        self.settle()
        return self

    def save_address(self, address: Address, make_default: bool = False) -> EditAddressPage:
        return self.open_address_form().fill_address(address, make_default).submit()

    def is_update_successful(self) -> bool:
        return not self.field_errors() and self.is_visible(self.SUCCESS, timeout_ms=min(self.timeout_ms, 5_000))

    def field_errors(self) -> list[str]:
        return self.texts(self.FIELD_ERRORS)

    def current_address(self) -> dict[str, str]:
        return {
            name: self.wait_for(self.FIELDS[name], state="attached").input_value()
            for name in TEXT_FIELDS
            if self.get_count(self.FIELDS[name])
        }

    def mismatches(self, expected: Address) -> list[str]:
        """Text fields whose shown value differs from ``expected``; absent optional fields are skipped."""
        current = self.current_address()
        return [name for name, value in current.items() if value != getattr(expected, name)]

    def _select_zone(self, zone_label: str | None) -> None:
        zone = self.resolve(self.ZONE, state="visible")
        options = zone.handle.locator("option")
        # Regions are reloaded by AJAX after the country changes.
        if not self.wait_until(lambda: options.count() > 1, description="address regions loaded"):
            LOGGER.warning("address_regions_missing", extra={"url": self.url})
            return
        if zone_label is not None:
            self.actions.select(zone, label=zone_label)
            return
        self.actions.select(zone, value=options.nth(1).get_attribute("value") or "")
