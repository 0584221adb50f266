"""Centralized runtime settings for the storefront pytest + Playwright suite.

This module resolves values from CLI options and environment variables, then
returns one immutable Settings object used across fixtures, hooks, and page
objects. Storefront routes live here too so page objects never hardcode them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import parse_qs, urlsplit

if TYPE_CHECKING:
    from pytest import Config

DEFAULT_BASE_URL = "https://ecommerce-playground.lambdatest.io"
DEFAULT_BROWSER = "chromium"
DEFAULT_VIEWPORT = "1280x720"
DEFAULT_ARTIFACTS_DIR = "artifacts"
DEFAULT_USER_FIXTURE = "test-user.json"
DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_POLL_INTERVAL_MS = 250
DEFAULT_ACTION_RETRIES = 0
DEFAULT_TRACE_MODE = "on-failure"
DEFAULT_VIDEO_MODE = "on-failure"
DEFAULT_SCREENSHOT_MODE = "on-failure"
MODE_CHOICES = {"on", "off", "on-failure"}
BROWSER_CHOICES = {"chromium", "firefox", "webkit"}

ROUTES: dict[str, str] = {
    "home": "/index.php?route=common/home",
    "login": "/index.php?route=account/login",
    "register": "/index.php?route=account/register",
    "register_success": "/index.php?route=account/success",
    "account": "/index.php?route=account/account",
    "logout": "/index.php?route=account/logout",
    "cart": "/index.php?route=checkout/cart",
    "checkout": "/index.php?route=checkout/checkout",
    "checkout_success": "/index.php?route=checkout/success",
    "compare": "/index.php?route=product/compare",
    "wishlist": "/index.php?route=account/wishlist",
    "search": "/index.php?route=product/search",
    "category": "/index.php?route=product/category&path={path}",
    "product": "/index.php?route=product/product&product_id={product_id}",
    "affiliate_add": "/index.php?route=account/affiliate/add",
    "affiliate_edit": "/index.php?route=account/affiliate",
    "affiliate_tracking": "/index.php?route=account/tracking",
    "password": "/index.php?route=account/password",
    "edit_account": "/index.php?route=account/edit",
    "address_book": "/index.php?route=account/address",
    "address_add": "/index.php?route=account/address/add",
    "order_history": "/index.php?route=account/order",
    "order_info": "/index.php?route=account/order/info&order_id={order_id}",
    "returns": "/index.php?route=account/return",
    "return_add": "/index.php?route=account/return/add",
    "return_success": "/index.php?route=account/return/success",
    "specials": "/index.php?route=product/special",
}


def route_of(url: str) -> str | None:
    """Decoded ``route`` query parameter, so "product%2Fsearch" reads as "product/search"."""
    values = parse_qs(urlsplit(url).query).get("route")
    return values[0] if values else None


def is_route(url: str, name: str) -> bool:
    """True when ``url`` is on the named storefront route, whatever its other parameters."""
    return route_of(url) == route_of(ROUTES[name])


@dataclass(frozen=True)
class Settings:
    """Resolved framework settings shared by fixtures and reporting hooks."""

    base_url: str
    browser_name: str
    headless: bool
    slowmo_ms: int
    viewport_width: int
    viewport_height: int
    artifacts_dir: Path
    timeout_ms: int
    trace: str
    video: str
    screenshot: str
    locale: str
    timezone_id: str
    user_fixture_path: Path
    run_e2e: bool
    action_retries: int
    poll_interval_ms: int

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}

    @property
    def headed(self) -> bool:
        return not self.headless

    def url_for(self, route: str, **params: object) -> str:
        """Absolute URL of a named storefront route."""
        return f"{self.base_url}{ROUTES[route].format(**params)}"


def _get_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def _parse_bool(value: str, *, name: str) -> bool:
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    raise ValueError(f"Invalid boolean for {name}: {value!r}")


def _parse_int(value: str, *, name: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ValueError(f"Invalid integer for {name}: {value!r}") from exc
    if parsed < 0:
        raise ValueError(f"{name} must be >= 0, got {parsed}")
    return parsed


def parse_viewport(value: str) -> tuple[int, int]:
    """Parse a WIDTHxHEIGHT viewport string into integer dimensions."""

    normalized = value.lower().strip()
    width_str, sep, height_str = normalized.partition("x")
    if not sep:
        raise ValueError(f"Viewport must be WIDTHxHEIGHT, got {value!r}")
    width = _parse_int(width_str, name="viewport width")
    height = _parse_int(height_str, name="viewport height")
    if width == 0 or height == 0:
        raise ValueError(f"Viewport dimensions must be > 0, got {value!r}")
    return width, height


def _pick(cli_value, env_value, default_value):
    if cli_value is not None:
        return cli_value
    if env_value is not None:
        return env_value
    return default_value


def _pick_int(cli_value, env_name: str, default_value: int) -> int:
    raw = _pick(cli_value, _get_env(env_name), default_value)
    return raw if isinstance(raw, int) else _parse_int(str(raw), name=env_name)


def _pick_bool(cli_value, env_name: str, default_value: bool) -> bool:
    if isinstance(cli_value, bool):
        return cli_value
    env_value = _get_env(env_name)
    if env_value is not None:
        return _parse_bool(env_value, name=env_name)
    return default_value


def _build_settings_from_sources(*, cli: dict[str, object] | None) -> Settings:
    """Merge CLI/env/defaults with precedence CLI > env > defaults."""

    cli = cli or {}

    base_url = str(_pick(cli.get("base_url"), _get_env("BASE_URL"), DEFAULT_BASE_URL)).rstrip("/")
    browser_name = (
        str(_pick(cli.get("browser"), _get_env("BROWSER"), DEFAULT_BROWSER)).strip().lower()
    )
    if browser_name not in BROWSER_CHOICES:
        raise ValueError(
            f"Unsupported browser {browser_name!r}; expected one of {sorted(BROWSER_CHOICES)}"
        )

    headless = _pick_bool(cli.get("headless"), "HEADLESS", True)
    slowmo_ms = _pick_int(cli.get("slowmo_ms"), "SLOWMO_MS", 0)

    viewport_raw = str(_pick(cli.get("viewport"), _get_env("VIEWPORT"), DEFAULT_VIEWPORT))
    viewport_width, viewport_height = parse_viewport(viewport_raw)

    artifacts_dir = Path(
        str(_pick(cli.get("artifacts_dir"), _get_env("ARTIFACTS_DIR"), DEFAULT_ARTIFACTS_DIR))
    )
    user_fixture_path = Path(
        str(
            _pick(
                cli.get("user_fixture_path"),
                _get_env("USER_FIXTURE_PATH"),
                DEFAULT_USER_FIXTURE,
            )
        )
    )

    timeout_ms = _pick_int(cli.get("timeout_ms"), "TIMEOUT_MS", DEFAULT_TIMEOUT_MS)
    action_retries = _pick_int(cli.get("action_retries"), "ACTION_RETRIES", DEFAULT_ACTION_RETRIES)
    poll_interval_ms = _pick_int(
        cli.get("poll_interval_ms"), "POLL_INTERVAL_MS", DEFAULT_POLL_INTERVAL_MS
    )
    if poll_interval_ms == 0:
        raise ValueError("POLL_INTERVAL_MS must be > 0")

    trace = str(_pick(cli.get("trace"), _get_env("TRACE"), DEFAULT_TRACE_MODE)).lower()
    video = str(_pick(cli.get("video"), _get_env("VIDEO"), DEFAULT_VIDEO_MODE)).lower()
    screenshot = str(
        _pick(cli.get("screenshot"), _get_env("SCREENSHOT"), DEFAULT_SCREENSHOT_MODE)
    ).lower()
    for mode_name, mode_value in (("trace", trace), ("video", video), ("screenshot", screenshot)):
        if mode_value not in MODE_CHOICES:
            raise ValueError(
                f"Invalid {mode_name} mode {mode_value!r}; expected one of {sorted(MODE_CHOICES)}"
            )

    locale = str(_pick(cli.get("locale"), _get_env("LOCALE"), "en-US"))
    timezone_id = str(_pick(cli.get("timezone_id"), _get_env("TIMEZONE_ID"), "UTC"))
    run_e2e = _pick_bool(cli.get("run_e2e"), "RUN_E2E", False)

    return Settings(
        base_url=base_url,
        browser_name=browser_name,
        headless=headless,
        slowmo_ms=slowmo_ms,
        viewport_width=viewport_width,
        viewport_height=viewport_height,
        artifacts_dir=artifacts_dir,
        timeout_ms=timeout_ms,
        trace=trace,
        video=video,
        screenshot=screenshot,
        locale=locale,
        timezone_id=timezone_id,
        user_fixture_path=user_fixture_path,
        run_e2e=run_e2e,
        action_retries=action_retries,
        poll_interval_ms=poll_interval_ms,
    )


def get_settings(pytest_config: Config | None = None) -> Settings:
    """Return the cached Settings for a pytest session, or an env/default-only copy."""

    if pytest_config is None:
        return _build_settings_from_sources(cli=None)

    # Cache on pytest config so hooks/fixtures share one consistent view of options.
    cached = getattr(pytest_config, "_qa_settings_cache", None)
    if cached is not None:
        return cached

    cli_values: dict[str, object] = {
        "base_url": pytest_config.getoption("base_url"),
        "browser": pytest_config.getoption("browser"),
        "headless": pytest_config.getoption("headless"),
        "slowmo_ms": pytest_config.getoption("slowmo_ms"),
        "viewport": pytest_config.getoption("viewport"),
        "artifacts_dir": pytest_config.getoption("artifacts_dir"),
        "trace": pytest_config.getoption("pw_trace"),
        "video": pytest_config.getoption("video"),
        "screenshot": pytest_config.getoption("screenshot"),
        "timeout_ms": pytest_config.getoption("timeout_ms"),
        "locale": pytest_config.getoption("locale"),
        "timezone_id": pytest_config.getoption("timezone_id"),
        "user_fixture_path": pytest_config.getoption("user_fixture_path"),
        "run_e2e": pytest_config.getoption("run_e2e"),
        "action_retries": pytest_config.getoption("action_retries"),
    }
    settings = _build_settings_from_sources(cli=cli_values)
    pytest_config._qa_settings_cache = settings  # type: ignore[attr-defined]
    return settings
