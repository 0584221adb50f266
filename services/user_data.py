"""Generated customer, address, and affiliate data for storefront tests."""

from __future__ import annotations

import random
import time
import uuid
from dataclasses import asdict, dataclass, replace

DEFAULT_PASSWORD = "Password123!"
# Country <select> value; the region dropdown is populated by AJAX after it changes.
DEFAULT_COUNTRY_ID = "223"

_STREET_NAMES = ("Oak", "Maple", "Pine", "Cedar", "Elm", "Birch", "Willow", "Spruce")
_STREET_TYPES = ("Street", "Avenue", "Road", "Lane", "Boulevard", "Drive", "Way")
_CITIES = ("Springfield", "Riverside", "Fairview", "Georgetown", "Madison", "Bristol")
_COMPANIES = ("Wanderer Inc", "Free Spirit LLC", "Nomad Solutions", "Liberty Tech", "Freedom Corp")


@dataclass(frozen=True)
class UserCredentials:
    email: str
    password: str


@dataclass(frozen=True)
class NewUser:
    firstname: str
    lastname: str
    email: str
    telephone: str
    password: str

    @property
    def credentials(self) -> UserCredentials:
        return UserCredentials(email=self.email, password=self.password)

    def registration_form(self) -> dict[str, str]:
        """Form fields the register route expects, including confirm and agree."""
        form = asdict(self)
        form["confirm"] = self.password
        form["agree"] = "1"
        return form


@dataclass(frozen=True)
class Address:
    firstname: str
    lastname: str
    company: str
    address_1: str
    address_2: str
    city: str
    postcode: str
    country_id: str = DEFAULT_COUNTRY_ID
    zone_label: str | None = None


@dataclass(frozen=True)
class AccountInformation:
    firstname: str
    lastname: str
    email: str
    telephone: str

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()


@dataclass(frozen=True)
class ReturnRequest:
    # None picks the first reason the storefront offers.
    reason_id: str | None = None
    comment: str = "Changed my mind"
    opened: bool = False


@dataclass(frozen=True)
class AffiliateDetails:
    company: str = "Test Company Ltd"
    website: str = "https://test-company.com"
    tax_id: str = "123456789"
    payment_method: str = "cheque"
    cheque_payee: str = "Test Company"
    paypal_email: str = "test@paypal.com"


def unique_email(prefix: str = "test") -> str:
    # Millisecond timestamps alone collide across xdist workers.
    return f"{prefix}+{int(time.time() * 1000)}{uuid.uuid4().hex[:6]}@mail.com"


def unique_user(**overrides: str) -> NewUser:
    user = NewUser(
        firstname="Auto",
        lastname="Tester",
        email=unique_email(),
        telephone="1234567890",
        password=DEFAULT_PASSWORD,
    )
    return replace(user, **overrides) if overrides else user


def random_address(rng: random.Random | None = None) -> Address:
    rng = rng or random.Random()
    return Address(
        firstname="Free",
        lastname="Bird",
        company=rng.choice(_COMPANIES),
        address_1=f"{rng.randint(1, 9999)} {rng.choice(_STREET_NAMES)} {rng.choice(_STREET_TYPES)}",
        address_2=f"Apt {rng.randint(1, 99)}",
        city=rng.choice(_CITIES),
        postcode=str(rng.randint(10000, 99999)),
    )


def affiliate_details(**overrides: str) -> AffiliateDetails:
    details = AffiliateDetails()
    return replace(details, **overrides) if overrides else details
