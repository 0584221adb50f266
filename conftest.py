"""Pytest entrypoint for storefront fixtures, artifacts, reporting, and metrics.

Main flow: resolve settings once, create session-scoped Playwright/browser,
create per-test contexts/pages and page objects, then publish
artifacts/logs/metrics via hooks. Live-storefront tests carry the `e2e`
marker and are skipped unless --run-e2e / RUN_E2E is set.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import time
from pathlib import Path
from typing import Generator, TypeVar

import pytest
from playwright.sync_api import APIRequestContext, Browser, Page, Playwright, sync_playwright

from config import BROWSER_CHOICES, MODE_CHOICES, Settings, get_settings
from metrics import SessionMetrics, write_metrics
from pages.affiliate_registration_page import AffiliateRegistrationPage
from pages.affiliate_tracking_page import AffiliateTrackingPage
from pages.base_page import BasePage
from pages.cart_page import CartPage
from pages.change_password_page import ChangePasswordPage
from pages.checkout_page import CheckoutPage
from pages.compare_page import ComparePage
from pages.edit_account_page import EditAccountPage
from pages.edit_address_page import EditAddressPage
from pages.login_page import LoginPage
from pages.my_account_page import MyAccountPage
from pages.order_details_page import OrderDetailsPage
from pages.product_filter_page import ProductFilterPage
from pages.product_listing_page import ProductListingPage
from pages.product_page import ProductPage
from pages.registration_page import RegistrationPage
from pages.returns_page import ReturnsPage
from pages.search_results_page import SearchResultsPage
from pages.special_offers_page import SpecialOffersPage
from pages.wishlist_page import WishlistPage
from qa_core.actions import STRATEGY_USAGE
from qa_core.journey import Journey, JourneyState
from qa_core.locators import LOCATOR_TIMEOUTS
from qa_logging import setup_logging
from services.api_client import StorefrontApi
from services.fixture_store import UserFixtureStore
from services.user_data import NewUser, UserCredentials, unique_user

try:
    from pytest_metadata.plugin import metadata_key
except ImportError:  # pragma: no cover - optional plugin path
    metadata_key = None

P = TypeVar("P", bound=BasePage)

LOGGER = logging.getLogger("qa")
_session_start: float | None = None
_session_results = {"passed": 0, "failed": 0, "skipped": 0}
_rerun_nodeids: set[str] = set()
_counted_nodeids: set[str] = set()


def _sanitize_nodeid(nodeid: str) -> str:
    """Convert pytest nodeids into filesystem-safe artifact directory names."""
    sanitized = re.sub(r"[^\w.-]+", "__", nodeid)
    return sanitized.strip("._") or "test"


def _safe_remove(path: Path) -> None:
    try:
        if path.is_file():
            path.unlink(missing_ok=True)
        elif path.is_dir():
            shutil.rmtree(path, ignore_errors=True)
    except Exception:
        LOGGER.exception("artifact_cleanup_failed", extra={"path": str(path)})


def _should_persist(mode: str, failed: bool) -> bool:
    """Apply on/off/on-failure artifact retention policy."""
    if mode == "on":
        return True
    if mode == "off":
        return False
    return failed


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register framework CLI options layered on top of env/default config."""
    group = parser.getgroup("qa-ui")
    group.addoption(
        "--base-url",
        action="store",
        dest="base_url",
        default=None,
        help="Target base URL",
    )
    group.addoption(
        "--browser",
        action="store",
        dest="browser",
        choices=sorted(BROWSER_CHOICES),
        default=None,
        help="Browser engine",
    )
    group.addoption(
        "--headed",
        action="store_const",
        const=False,
        dest="headless",
        default=None,
        help="Run headed (same as --headless=false)",
    )
    group.addoption(
        "--headless",
        action="store_const",
        const=True,
        dest="headless",
        help="Force headless mode",
    )
    group.addoption(
        "--slowmo-ms",
        action="store",
        type=int,
        dest="slowmo_ms",
        default=None,
        help="Playwright launch slow motion delay in milliseconds",
    )
    group.addoption(
        "--viewport",
        action="store",
        dest="viewport",
        default=None,
        help="Viewport size as WIDTHxHEIGHT (e.g. 1280x720)",
    )
    group.addoption(
        "--artifacts-dir",
        action="store",
        dest="artifacts_dir",
        default=None,
        help="Directory for per-test artifacts and reports",
    )
    group.addoption(
        "--pw-trace",
        "--playwright-trace",
        action="store",
        dest="pw_trace",
        choices=sorted(MODE_CHOICES),
        default=None,
        help="Playwright tracing policy: on|off|on-failure",
    )
    group.addoption(
        "--video",
        action="store",
        dest="video",
        choices=sorted(MODE_CHOICES),
        default=None,
        help="Video capture policy: on|off|on-failure",
    )
    group.addoption(
        "--screenshot",
        action="store",
        dest="screenshot",
        choices=sorted(MODE_CHOICES),
        default=None,
        help="Screenshot capture policy: on|off|on-failure",
    )
    group.addoption(
        "--timeout-ms",
        action="store",
        type=int,
        dest="timeout_ms",
        default=None,
        help="Default action/navigation timeout in milliseconds",
    )
    group.addoption(
        "--locale",
        action="store",
        dest="locale",
        default=None,
        help="Browser context locale (default en-US)",
    )
    group.addoption(
        "--timezone-id",
        action="store",
        dest="timezone_id",
        default=None,
        help="Browser context timezone (default UTC)",
    )
    group.addoption(
        "--user-fixture",
        action="store",
        dest="user_fixture_path",
        default=None,
        help="JSON file holding the registered test user (default test-user.json)",
    )
    group.addoption(
        "--run-e2e",
        action="store_const",
        const=True,
        dest="run_e2e",
        default=None,
        help="Run tests marked e2e against the live storefront",
    )
    group.addoption(
        "--action-retries",
        action="store",
        type=int,
        dest="action_retries",
        default=None,
        help="Extra passes over the click/fill fallback ladder before an action fails",
    )


@pytest.fixture(scope="session", autouse=True)
def _init_logging() -> None:
    setup_logging()


@pytest.fixture(scope="session")
def settings(pytestconfig: pytest.Config) -> Settings:
    """Session-cached settings fixture used by all browser/page fixtures."""
    configured = get_settings(pytestconfig)
    configured.artifacts_dir.mkdir(parents=True, exist_ok=True)
    return configured


def pytest_configure(config: pytest.Config) -> None:
    """Register markers and enrich pytest-html metadata when the plugin is present."""
    config.addinivalue_line("markers", "smoke: critical path storefront journeys")
    config.addinivalue_line("markers", "regression: broader functional storefront coverage")
    config.addinivalue_line("markers", "e2e: needs the live storefront; skipped unless --run-e2e")

    if metadata_key is None:
        return

    settings = get_settings(config)
    metadata = config.stash.setdefault(metadata_key, {})
    metadata["base_url"] = settings.base_url
    metadata["browser"] = settings.browser_name
    metadata["headless"] = str(settings.headless)
    metadata["viewport"] = f"{settings.viewport_width}x{settings.viewport_height}"
    metadata["timeout_ms"] = str(settings.timeout_ms)
    metadata["action_retries"] = str(settings.action_retries)
    metadata["commit_sha"] = os.getenv("GITHUB_SHA", "")[:12] or "local"


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip live-storefront tests unless e2e runs were requested."""
    if get_settings(config).run_e2e:
        return
    skip_e2e = pytest.mark.skip(reason="live storefront test; pass --run-e2e or set RUN_E2E=1")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


def pytest_sessionstart(session: pytest.Session) -> None:
    global _session_start
    _session_start = time.perf_counter()


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    """Publish Prometheus textfile metrics if METRICS_PATH is configured."""
    if _session_start is None:
        return
    duration = time.perf_counter() - _session_start
    metrics_path = os.getenv("METRICS_PATH")
    if not metrics_path:
        return
    summary = SessionMetrics(
        total=session.testscollected or 0,
        passed=_session_results["passed"],
        failed=_session_results["failed"],
        skipped=_session_results["skipped"],
        flaky=len(_rerun_nodeids),
        duration_seconds=duration,
        action_strategies=dict(STRATEGY_USAGE),
        locator_timeouts=dict(LOCATOR_TIMEOUTS),
    )
    write_metrics(metrics_path, summary)


@pytest.fixture(scope="session")
def playwright_instance() -> Generator[Playwright, None, None]:
    """Session-scoped Playwright driver process."""
    with sync_playwright() as playwright:
        yield playwright


@pytest.fixture(scope="session")
def browser(settings: Settings, playwright_instance: Playwright) -> Generator[Browser, None, None]:
    """Session-scoped browser reused across isolated per-test contexts."""
    browser_type = getattr(playwright_instance, settings.browser_name)
    browser = browser_type.launch(headless=settings.headless, slow_mo=settings.slowmo_ms)
    yield browser
    browser.close()


@pytest.fixture
def page(
    request: pytest.FixtureRequest,
    browser: Browser,
    settings: Settings,
) -> Generator[Page, None, None]:
    """Create a per-test browser context/page and manage failure diagnostics artifacts."""
    test_dir = settings.artifacts_dir / _sanitize_nodeid(request.node.nodeid)
    test_dir.mkdir(parents=True, exist_ok=True)
    # Hook state is stored on the pytest item so setup/call/teardown hooks can share it.
    request.node._qa_artifact_dir = test_dir  # type: ignore[attr-defined]

    context_kwargs: dict[str, object] = {
        "viewport": settings.viewport,
        "locale": settings.locale,
        "timezone_id": settings.timezone_id,
    }
    if settings.video != "off":
        # Playwright records videos per-context; writing to the test dir simplifies cleanup.
        context_kwargs["record_video_dir"] = str(test_dir)

    context = browser.new_context(**context_kwargs)
    context.set_default_timeout(settings.timeout_ms)
    context.set_default_navigation_timeout(settings.timeout_ms)
    if settings.trace != "off":
        context.tracing.start(screenshots=True, snapshots=True, sources=True)

    page = context.new_page()
    page.set_default_timeout(settings.timeout_ms)
    page.set_default_navigation_timeout(settings.timeout_ms)

    console_errors: list[str] = []
    page_errors: list[str] = []

    def on_console(msg) -> None:
        if msg.type == "error":
            console_errors.append(msg.text)

    def on_page_error(exc) -> None:
        page_errors.append(str(exc))

    page.on("console", on_console)
    page.on("pageerror", on_page_error)

    request.node._qa_console_errors = console_errors  # type: ignore[attr-defined]
    request.node._qa_page_errors = page_errors  # type: ignore[attr-defined]
    request.node._qa_artifacts = {}  # type: ignore[attr-defined]

    yield page

    rep_call = getattr(request.node, "rep_call", None)
    failed = bool(rep_call and rep_call.failed)
    artifacts: dict[str, str] = {}

    if _should_persist(settings.screenshot, failed):
        screenshot_path = test_dir / "screenshot.png"
        try:
            page.screenshot(path=str(screenshot_path), full_page=True)
            artifacts["screenshot"] = str(screenshot_path)
        except Exception:
            LOGGER.exception(
                "screenshot_capture_failed",
                extra={"test_nodeid": request.node.nodeid},
            )

    if settings.trace != "off":
        trace_path = test_dir / "trace.zip"
        try:
            if _should_persist(settings.trace, failed):
                context.tracing.stop(path=str(trace_path))
                artifacts["trace"] = str(trace_path)
            else:
                context.tracing.stop()
        except Exception:
            LOGGER.exception("trace_capture_failed", extra={"test_nodeid": request.node.nodeid})

    console_log_path = test_dir / "console-errors.txt"
    combined_errors = []
    if console_errors:
        combined_errors.extend([f"[console] {msg}" for msg in console_errors])
    if page_errors:
        combined_errors.extend([f"[pageerror] {msg}" for msg in page_errors])
    if failed and combined_errors:
        # Negative diagnostics are most useful on failures; skip noisier logs on passing tests.
        console_log_path.write_text("\n".join(combined_errors) + "\n", encoding="utf-8")
        artifacts["console_errors"] = str(console_log_path)

    video_path_to_delete: Path | None = None
    try:
        video = page.video
        if video is not None:
            video_path = Path(video.path())
            if _should_persist(settings.video, failed):
                artifacts["video"] = str(video_path)
            else:
                video_path_to_delete = video_path
    except Exception:
        LOGGER.exception("video_capture_failed", extra={"test_nodeid": request.node.nodeid})

    request.node._qa_artifacts = artifacts  # type: ignore[attr-defined]

    context.close()

    if video_path_to_delete is not None:
        _safe_remove(video_path_to_delete)

    # Drop empty directories so on-failure mode does not leave artifact folders for passing tests.
    # Journey step screenshots also live here and keep the directory alive.
    if not artifacts and test_dir.exists() and not any(test_dir.iterdir()):
        _safe_remove(test_dir)


def _build(page_class: type[P], page: Page, settings: Settings) -> P:
    return page_class(
        page=page,
        base_url=settings.base_url,
        timeout_ms=settings.timeout_ms,
        poll_interval_ms=settings.poll_interval_ms,
        retries=settings.action_retries,
    )


@pytest.fixture
def login_page(page: Page, settings: Settings) -> LoginPage:
    return _build(LoginPage, page, settings)


@pytest.fixture
def registration_page(page: Page, settings: Settings) -> RegistrationPage:
    return _build(RegistrationPage, page, settings)


@pytest.fixture
def my_account_page(page: Page, settings: Settings) -> MyAccountPage:
    return _build(MyAccountPage, page, settings)


@pytest.fixture
def product_listing_page(page: Page, settings: Settings) -> ProductListingPage:
    return _build(ProductListingPage, page, settings)


@pytest.fixture
def product_page(page: Page, settings: Settings) -> ProductPage:
    return _build(ProductPage, page, settings)


@pytest.fixture
def cart_page(page: Page, settings: Settings) -> CartPage:
    return _build(CartPage, page, settings)


@pytest.fixture
def checkout_page(page: Page, settings: Settings) -> CheckoutPage:
    return _build(CheckoutPage, page, settings)


@pytest.fixture
def search_results_page(page: Page, settings: Settings) -> SearchResultsPage:
    return _build(SearchResultsPage, page, settings)


@pytest.fixture
def wishlist_page(page: Page, settings: Settings) -> WishlistPage:
    return _build(WishlistPage, page, settings)


@pytest.fixture
def compare_page(page: Page, settings: Settings) -> ComparePage:
    return _build(ComparePage, page, settings)


@pytest.fixture
def affiliate_registration_page(page: Page, settings: Settings) -> AffiliateRegistrationPage:
    return _build(AffiliateRegistrationPage, page, settings)


@pytest.fixture
def product_filter_page(page: Page, settings: Settings) -> ProductFilterPage:
    return _build(ProductFilterPage, page, settings)


@pytest.fixture
def affiliate_tracking_page(page: Page, settings: Settings) -> AffiliateTrackingPage:
    return _build(AffiliateTrackingPage, page, settings)


@pytest.fixture
def change_password_page(page: Page, settings: Settings) -> ChangePasswordPage:
    return _build(ChangePasswordPage, page, settings)


@pytest.fixture
def edit_account_page(page: Page, settings: Settings) -> EditAccountPage:
    return _build(EditAccountPage, page, settings)


@pytest.fixture
def edit_address_page(page: Page, settings: Settings) -> EditAddressPage:
    return _build(EditAddressPage, page, settings)


@pytest.fixture
def order_details_page(page: Page, settings: Settings) -> OrderDetailsPage:
    return _build(OrderDetailsPage, page, settings)


@pytest.fixture
def returns_page(page: Page, settings: Settings) -> ReturnsPage:
    return _build(ReturnsPage, page, settings)


@pytest.fixture
def special_offers_page(page: Page, settings: Settings) -> SpecialOffersPage:
    return _build(SpecialOffersPage, page, settings)


@pytest.fixture
def user_fixture_store(settings: Settings) -> UserFixtureStore:
    return UserFixtureStore(settings.user_fixture_path)


@pytest.fixture
def saved_user(user_fixture_store: UserFixtureStore) -> UserCredentials:
    """Credentials written by the registration setup test; FixtureMissing otherwise."""
    return user_fixture_store.require()


@pytest.fixture
def api_request_context(
    playwright_instance: Playwright,
    settings: Settings,
) -> Generator[APIRequestContext, None, None]:
    """Browser-less request context for setup calls (registration, login)."""
    context = playwright_instance.request.new_context(base_url=settings.base_url)
    yield context
    context.dispose()


@pytest.fixture
def storefront_api(api_request_context: APIRequestContext, settings: Settings) -> StorefrontApi:
    return StorefrontApi(api_request_context, settings.base_url, timeout_ms=settings.timeout_ms)


@pytest.fixture
def registered_user(registration_page: RegistrationPage) -> NewUser:
    """A fresh account registered through the UI and left logged in.

    Each test gets its own user so carts and wishlists never leak across tests.
    """
    user = unique_user()
    registration_page.open().register(user)
    if not registration_page.is_registration_successful():
        pytest.fail(f"setup registration failed for {user.email}: {registration_page.error_message()!r}")
    return user


@pytest.fixture
def journey_state() -> JourneyState:
    return JourneyState()


@pytest.fixture
def journey(request: pytest.FixtureRequest, page: Page) -> Journey:
    """Step recorder whose failure screenshots land in the test's artifact directory."""
    artifact_dir = getattr(request.node, "_qa_artifact_dir", None)
    return Journey(request.node.name, page, artifact_dir)


def pytest_runtest_setup(item: pytest.Item) -> None:
    """Emit a structured start event for each test before fixture-heavy setup runs."""
    item._qa_test_started_at = time.perf_counter()  # type: ignore[attr-defined]
    settings = get_settings(item.config)
    artifact_dir = settings.artifacts_dir / _sanitize_nodeid(item.nodeid)
    LOGGER.info(
        "test_start",
        extra={
            "event": "test_start",
            "test_nodeid": item.nodeid,
            "browser": settings.browser_name,
            "base_url": settings.base_url,
            "headless": settings.headless,
            "worker": os.getenv("PYTEST_XDIST_WORKER", "master"),
            "artifact_dir": str(artifact_dir),
            "retries": max(getattr(item, "execution_count", 1) - 1, 0),
        },
    )


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo[None]):
    """Capture per-phase reports, attach artifacts, and emit structured end events."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)

    if report.when == "teardown":
        pytest_html = item.config.pluginmanager.getplugin("html")
        if pytest_html:
            # pytest-html changed `extra` -> `extras` across versions; support both.
            extras = list(getattr(report, "extras", getattr(report, "extra", [])))
            artifact_paths: dict[str, str] = getattr(item, "_qa_artifacts", {})
            if "screenshot" in artifact_paths:
                extras.append(pytest_html.extras.image(artifact_paths["screenshot"]))
            if "trace" in artifact_paths:
                extras.append(pytest_html.extras.url(artifact_paths["trace"], name="trace.zip"))
            if "video" in artifact_paths:
                extras.append(pytest_html.extras.url(artifact_paths["video"], name="video.webm"))
            if "console_errors" in artifact_paths:
                extras.append(
                    pytest_html.extras.url(
                        artifact_paths["console_errors"],
                        name="console-errors.txt",
                    )
                )
            report.extras = extras
            report.extra = extras

        started_at = getattr(item, "_qa_test_started_at", None)
        duration_ms = int((time.perf_counter() - started_at) * 1000) if started_at else None
        setup_report = getattr(item, "rep_setup", None)
        call_report = getattr(item, "rep_call", None)
        # Derive a single user-facing outcome from pytest's multi-phase reports.
        if setup_report is not None and setup_report.failed:
            outcome_name = "error"
        elif call_report is not None:
            outcome_name = call_report.outcome
        elif setup_report is not None and setup_report.skipped:
            outcome_name = "skipped"
        elif report.failed:
            outcome_name = "error"
        else:
            outcome_name = report.outcome
        settings = get_settings(item.config)
        artifact_dir = getattr(
            item,
            "_qa_artifact_dir",
            settings.artifacts_dir / _sanitize_nodeid(item.nodeid),
        )
        LOGGER.info(
            "test_end",
            extra={
                "event": "test_end",
                "test_nodeid": item.nodeid,
                "outcome": outcome_name,
                "duration_ms": duration_ms,
                "browser": settings.browser_name,
                "base_url": settings.base_url,
                "headless": settings.headless,
                "worker": os.getenv("PYTEST_XDIST_WORKER", "master"),
                "artifact_dir": str(artifact_dir),
                "retries": max(getattr(item, "execution_count", 1) - 1, 0),
            },
        )


def pytest_runtest_logreport(report: pytest.TestReport) -> None:
    """Track one aggregate outcome per test for session metrics export."""
    if report.outcome == "rerun":
        _rerun_nodeids.add(report.nodeid)
        return

    should_count = False
    if report.when == "call":
        should_count = True
    elif report.when == "setup" and report.skipped:
        should_count = True

    # Count each nodeid once to avoid double-counting setup/call/teardown phases.
    if not should_count or report.nodeid in _counted_nodeids:
        return

    _counted_nodeids.add(report.nodeid)
    if report.passed:
        _session_results["passed"] += 1
    elif report.failed:
        _session_results["failed"] += 1
    elif report.skipped:
        _session_results["skipped"] += 1


def pytest_html_report_title(report) -> None:
    report.title = "Storefront E2E Report"
