from __future__ import annotations

from pathlib import Path

import pytest

from config import DEFAULT_BASE_URL, ROUTES, _build_settings_from_sources, is_route, parse_viewport, route_of

ENV_VARS = (
    "BASE_URL",
    "BROWSER",
    "HEADLESS",
    "TIMEOUT_MS",
    "USER_FIXTURE_PATH",
    "RUN_E2E",
    "ACTION_RETRIES",
    "POLL_INTERVAL_MS",
    "VIEWPORT",
    "TRACE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_target_the_storefront() -> None:
    settings = _build_settings_from_sources(cli=None)

    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.user_fixture_path == Path("test-user.json")
    assert settings.run_e2e is False
    assert settings.action_retries == 0
    assert settings.poll_interval_ms == 250
    assert settings.headless is True


def test_cli_beats_env_beats_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BASE_URL", "https://staging.example.test/")
    monkeypatch.setenv("ACTION_RETRIES", "2")
    monkeypatch.setenv("RUN_E2E", "yes")

    from_env = _build_settings_from_sources(cli=None)
    from_cli = _build_settings_from_sources(
        cli={"base_url": "https://cli.example.test", "action_retries": 1, "run_e2e": None}
    )

    assert from_env.base_url == "https://staging.example.test"
    assert from_env.action_retries == 2
    assert from_env.run_e2e is True
    assert from_cli.base_url == "https://cli.example.test"
    assert from_cli.action_retries == 1
    assert from_cli.run_e2e is True


def test_user_fixture_path_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("USER_FIXTURE_PATH", "fixtures/user.json")

    assert _build_settings_from_sources(cli=None).user_fixture_path == Path("fixtures/user.json")


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("RUN_E2E", "maybe"),
        ("ACTION_RETRIES", "-1"),
        ("ACTION_RETRIES", "many"),
        ("POLL_INTERVAL_MS", "0"),
        ("BROWSER", "opera"),
        ("TRACE", "sometimes"),
    ],
)
def test_invalid_values_name_the_variable(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError):
        _build_settings_from_sources(cli=None)


def test_url_for_formats_route_parameters() -> None:
    settings = _build_settings_from_sources(cli={"base_url": "https://shop.test/"})

    assert settings.url_for("cart") == "https://shop.test/index.php?route=checkout/cart"
    assert settings.url_for("product", product_id=40).endswith("product_id=40")
    assert settings.url_for("category", path="18").endswith("&path=18")


def test_routes_are_relative_query_strings() -> None:
    for name, route in ROUTES.items():
        assert "route=" in route, name


def test_parse_viewport() -> None:
    assert parse_viewport("1920x1080") == (1920, 1080)
    with pytest.raises(ValueError):
        parse_viewport("wide")


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://shop.test/index.php?route=product/search&search=iphone", "product/search"),
        ("https://shop.test/index.php?route=product%2Fsearch&search=iphone", "product/search"),
        ("https://shop.test/index.php?search=mac&route=checkout/cart", "checkout/cart"),
        ("https://shop.test/", None),
    ],
)
def test_route_of_decodes_route_parameter(url: str, expected: str | None) -> None:
    assert route_of(url) == expected


def test_is_route_matches_whole_route_only() -> None:
    assert is_route("https://shop.test/index.php?route=account%2Faccount", "account")
    assert is_route("https://shop.test/index.php?route=checkout/success", "checkout_success")
    assert not is_route("https://shop.test/index.php?route=account/account", "login")
    # account/affiliate/add is not the affiliate edit route
    assert not is_route("https://shop.test/index.php?route=account/affiliate/add", "affiliate_edit")
