"""Request-level setup calls against the storefront (no browser page involved).

The storefront answers a rejected form with HTTP 200 and re-renders the same
page, so ``success`` is judged from where the POST ended up rather than from
the status code alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from playwright.sync_api import APIRequestContext

from config import ROUTES, is_route
from services.user_data import NewUser, UserCredentials

LOGGER = logging.getLogger("qa.api")

ACCOUNT_CREATED_MARKER = "your account has been created"


@dataclass(frozen=True)
class ApiResponse:
    success: bool
    status: int
    body: str
    url: str = ""
    ok: bool = False


def registration_accepted(url: str, body: str) -> bool:
    return is_route(url, "register_success") or ACCOUNT_CREATED_MARKER in body.lower()


def login_accepted(url: str, body: str) -> bool:
    # A failed login re-renders account/login; an accepted one redirects into the account.
    return bool(url) and not is_route(url, "login")


class StorefrontApi:
    """Form POSTs to the register/login routes through Playwright's APIRequestContext."""

    def __init__(self, request: APIRequestContext, base_url: str, timeout_ms: int = 10_000) -> None:
        self.request = request
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms

    def register_user(self, user: NewUser) -> ApiResponse:
        return self._post_form(
            ROUTES["register"], user.registration_form(), accepted=registration_accepted, event="api_register"
        )

    def login_user(self, credentials: UserCredentials) -> ApiResponse:
        form = {"email": credentials.email, "password": credentials.password}
        return self._post_form(ROUTES["login"], form, accepted=login_accepted, event="api_login")

    def _post_form(
        self,
        route: str,
        form: dict[str, str],
        *,
        accepted: Callable[[str, str], bool],
        event: str,
    ) -> ApiResponse:
        url = f"{self.base_url}{route}"
        response = self.request.post(url, form=form, timeout=self.timeout_ms)
        body = response.text()
        result = ApiResponse(
            success=response.ok and accepted(response.url, body),
            status=response.status,
            body=body,
            url=response.url,
            ok=response.ok,
        )
        extra = {"status": result.status, "success": result.success, "final_url": result.url}
        if result.success:
            LOGGER.info(event, extra=extra)
        else:
            LOGGER.warning(f"{event}_rejected", extra=extra)
        return result
