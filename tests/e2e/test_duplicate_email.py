from __future__ import annotations

import pytest

from pages.my_account_page import MyAccountPage
from pages.registration_page import DUPLICATE_EMAIL_KEYWORDS, RegistrationPage
from services.user_data import NewUser, unique_user

pytestmark = pytest.mark.e2e


@pytest.mark.regression
def test_registration_with_existing_email_is_rejected(
    registered_user: NewUser,
    my_account_page: MyAccountPage,
    registration_page: RegistrationPage,
) -> None:
    my_account_page.open().logout()

    duplicate = unique_user(email=registered_user.email, firstname="Again")
    registration_page.open().register(duplicate)

    assert not registration_page.is_registration_successful()
    assert registration_page.is_error_displayed()
    message = registration_page.error_message()
    assert registration_page.is_duplicate_email_error(), (
        f"expected one of {DUPLICATE_EMAIL_KEYWORDS} in {message!r}"
    )
