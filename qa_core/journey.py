"""Multi-page user journeys with per-step outcomes and failure screenshots.

Usage inside a test::

    journey = Journey("cart persistence", page, artifacts_dir)
    with journey.step("login"):
        login_page.open().login(user)
    ...
    journey.report().raise_for_failures()

A failing step is recorded, screenshotted, and re-raised, so pytest still
reports the original exception while the journey log shows where it happened.
"""

from __future__ import annotations

import logging
import re
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from qa_core.errors import AssertionMismatch
from services.user_data import UserCredentials

LOGGER = logging.getLogger("qa.journey")


@dataclass
class JourneyState:
    """Per-test expectations carried between page objects; never shared across tests."""

    user: UserCredentials | None = None
    expected_products: list[str] = field(default_factory=list)

    def expect_product(self, name: str) -> None:
        if name not in self.expected_products:
            self.expected_products.append(name)

    def expect_products(self, names: list[str]) -> None:
        for name in names:
            self.expect_product(name)


@dataclass(frozen=True)
class StepResult:
    name: str
    passed: bool
    duration_ms: int
    error: str | None = None
    screenshot: str | None = None


@dataclass(frozen=True)
class JourneyReport:
    name: str
    steps: tuple[StepResult, ...]

    @property
    def passed(self) -> int:
        return sum(1 for step in self.steps if step.passed)

    @property
    def failed(self) -> int:
        return len(self.steps) - self.passed

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def summary(self) -> str:
        lines = [f"{self.name}: {self.passed} passed, {self.failed} failed"]
        for step in self.steps:
            status = "PASS" if step.passed else "FAIL"
            line = f"  [{status}] {step.name} ({step.duration_ms}ms)"
            if step.error:
                line += f" - {step.error}"
            lines.append(line)
        return "\n".join(lines)

    def raise_for_failures(self) -> None:
        if not self.ok:
            raise AssertionMismatch(self.summary())


class Journey:
    """Sequence named steps over one page and aggregate their outcomes."""

    def __init__(self, name: str, page: Page, artifacts_dir: Path | None = None) -> None:
        self.name = name
        self.page = page
        self.artifacts_dir = artifacts_dir
        self._steps: list[StepResult] = []

    @property
    def steps(self) -> tuple[StepResult, ...]:
        return tuple(self._steps)

    @contextmanager
    def step(self, name: str) -> Iterator[None]:
        started = time.perf_counter()
        LOGGER.info("journey_step_start", extra={"journey": self.name, "step": name})
        try:
            yield
        except Exception as exc:
            duration_ms = int((time.perf_counter() - started) * 1000)
            screenshot = self._capture(name)
            self._steps.append(
                StepResult(
                    name=name,
                    passed=False,
                    duration_ms=duration_ms,
                    error=f"{type(exc).__name__}: {exc}".splitlines()[0],
                    screenshot=screenshot,
                )
            )
            LOGGER.error(
                "journey_step_failed",
                extra={
                    "journey": self.name,
                    "step": name,
                    "duration_ms": duration_ms,
                    "error": str(exc),
                    "screenshot": screenshot,
                },
            )
            raise
        duration_ms = int((time.perf_counter() - started) * 1000)
        self._steps.append(StepResult(name=name, passed=True, duration_ms=duration_ms))
        LOGGER.info(
            "journey_step_end",
            extra={"journey": self.name, "step": name, "duration_ms": duration_ms},
        )

    def report(self) -> JourneyReport:
        return JourneyReport(name=self.name, steps=self.steps)

    def _capture(self, step_name: str) -> str | None:
        if self.artifacts_dir is None:
            return None
        slug = re.sub(r"[^\w.-]+", "_", f"{self.name}-{step_name}").strip("_")
        target = self.artifacts_dir / f"{slug}.png"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            self.page.screenshot(path=str(target), full_page=True)
        except PlaywrightError:
            LOGGER.exception("journey_screenshot_failed", extra={"step": step_name})
            return None
        return str(target)
