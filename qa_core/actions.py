"""Finite fallback ladder around click/fill/check/select interactions.

The storefront hides buttons behind hover states, overlays, and sticky headers,
so a plain Playwright click is not always enough. Each action walks the ladder
native -> scroll_into_view -> force -> script, trying every rung once per pass,
and reports which rung succeeded.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator

from qa_core.errors import ActionFailed
from qa_core.locators import ResolvedElement

LOGGER = logging.getLogger("qa.actions")

LADDER = ("native", "scroll_into_view", "force", "script")
DEFAULT_ATTEMPT_TIMEOUT_MS = 5_000

# (action, strategy) -> successful uses; exported as metrics at session end.
STRATEGY_USAGE: Counter[tuple[str, str]] = Counter()

ScriptHandler = Callable[[Locator], None]
Operation = Callable[[Locator, bool, int], None]

_CLICK_SCRIPT = "el => el.click()"
_FILL_SCRIPT = """(el, value) => {
    el.focus();
    el.value = value;
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
}"""
_CHECK_SCRIPT = """(el, checked) => {
    if (el.checked !== checked) {
        el.checked = checked;
        el.dispatchEvent(new Event('click', { bubbles: true }));
        el.dispatchEvent(new Event('change', { bubbles: true }));
    }
}"""
_SELECT_SCRIPT = """(el, wanted) => {
    const option = Array.from(el.options).find(
        (opt) => opt.value === wanted || opt.text.trim() === wanted
    );
    if (!option) {
        throw new Error(`no option ${wanted}`);
    }
    el.value = option.value;
    el.dispatchEvent(new Event('change', { bubbles: true }));
}"""
_CALL_PAGE_FUNCTION = """(el, args) => {
    const [path, id] = args;
    const parts = path.split('.');
    const method = parts.pop();
    const owner = parts.reduce((obj, key) => (obj ? obj[key] : undefined), window);
    if (!owner || typeof owner[method] !== 'function') {
        throw new Error(`${path} is not available on this page`);
    }
    owner[method](id);
}"""


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one interaction, including every rung that was tried."""

    action: str
    target: str
    success: bool
    strategy: str | None
    attempts: tuple[tuple[str, str | None], ...]
    error: str | None = None

    @property
    def used_fallback(self) -> bool:
        return self.success and self.strategy != LADDER[0]


def script_handler(script: str, arg: Any = None) -> ScriptHandler:
    """Wrap a JS function ``(el, arg) => ...`` as the ladder's script rung."""

    def run(handle: Locator) -> None:
        handle.evaluate(script, arg)

    return run


def onclick_handler(function_path: str) -> ScriptHandler:
    """Call the page function an element's ``onclick`` would call, e.g. ``cart.add('42')``.

    The id is read from the element's own onclick attribute, so the handler only
    works on elements that expose it; otherwise it raises LookupError and the
    ladder reports the script rung as failed.
    """

    pattern = re.compile(re.escape(function_path) + r"\(\s*'?([\w-]+)'?")

    def run(handle: Locator) -> None:
        onclick = handle.get_attribute("onclick") or ""
        match = pattern.search(onclick)
        if match is None:
            raise LookupError(f"no {function_path}(...) call in onclick={onclick!r}")
        handle.evaluate(_CALL_PAGE_FUNCTION, [function_path, match.group(1)])

    return run


class ActionRetrier:
    """Run UI actions through the bounded fallback ladder."""

    def __init__(
        self,
        attempt_timeout_ms: int = DEFAULT_ATTEMPT_TIMEOUT_MS,
        retries: int = 0,
        strategies: Sequence[str] = LADDER,
    ) -> None:
        unknown = set(strategies) - set(LADDER)
        if unknown:
            raise ValueError(f"Unknown action strategies: {sorted(unknown)}")
        if retries < 0:
            raise ValueError(f"retries must be >= 0, got {retries}")
        self.attempt_timeout_ms = attempt_timeout_ms
        self.retries = retries
        self.strategies = tuple(strategies)

    def click(
        self,
        target: Locator | ResolvedElement,
        *,
        description: str | None = None,
        handler: ScriptHandler | None = None,
    ) -> ActionResult:
        return self.perform(
            "click",
            target,
            lambda handle, force, timeout: handle.click(force=force, timeout=timeout),
            handler or script_handler(_CLICK_SCRIPT),
            description=description,
        )

    def fill(
        self,
        target: Locator | ResolvedElement,
        value: str,
        *,
        description: str | None = None,
    ) -> ActionResult:
        return self.perform(
            "fill",
            target,
            lambda handle, force, timeout: handle.fill(value, force=force, timeout=timeout),
            script_handler(_FILL_SCRIPT, value),
            description=description,
        )

    def check(
        self,
        target: Locator | ResolvedElement,
        checked: bool = True,
        *,
        description: str | None = None,
    ) -> ActionResult:
        def operation(handle: Locator, force: bool, timeout: int) -> None:
            if checked:
                handle.check(force=force, timeout=timeout)
            else:
                handle.uncheck(force=force, timeout=timeout)

        return self.perform(
            "check" if checked else "uncheck",
            target,
            operation,
            script_handler(_CHECK_SCRIPT, checked),
            description=description,
        )

    def select(
        self,
        target: Locator | ResolvedElement,
        *,
        value: str | None = None,
        label: str | None = None,
        description: str | None = None,
    ) -> ActionResult:
        if (value is None) == (label is None):
            raise ValueError("select() needs exactly one of value or label")

        def operation(handle: Locator, force: bool, timeout: int) -> None:
            if value is not None:
                handle.select_option(value=value, force=force, timeout=timeout)
            else:
                handle.select_option(label=label, force=force, timeout=timeout)

        return self.perform(
            "select",
            target,
            operation,
            script_handler(_SELECT_SCRIPT, value if value is not None else label),
            description=description,
        )

    def perform(
        self,
        action: str,
        target: Locator | ResolvedElement,
        operation: Operation,
        script: ScriptHandler,
        *,
        description: str | None = None,
    ) -> ActionResult:
        """Run the ladder and return the successful result, or raise ActionFailed."""

        result = self.try_perform(action, target, operation, script, description=description)
        if not result.success:
            raise ActionFailed(result.action, result.target, result.attempts)
        return result

    def try_perform(
        self,
        action: str,
        target: Locator | ResolvedElement,
        operation: Operation,
        script: ScriptHandler,
        *,
        description: str | None = None,
    ) -> ActionResult:
        """Like perform(), but a fully failed ladder is returned instead of raised."""

        handle = target.handle if isinstance(target, ResolvedElement) else target
        name = description or _describe(target)
        attempts: list[tuple[str, str | None]] = []

        for ladder_pass in range(self.retries + 1):
            for strategy in self.strategies:
                try:
                    self._run_rung(strategy, handle, operation, script)
                except (PlaywrightError, LookupError) as exc:
                    attempts.append((strategy, _first_line(exc)))
                    LOGGER.debug(
                        "action_attempt_failed",
                        extra={
                            "action": action,
                            "target": name,
                            "strategy": strategy,
                            "pass": ladder_pass,
                            "error": _first_line(exc),
                        },
                    )
                    continue
                attempts.append((strategy, None))
                STRATEGY_USAGE[(action, strategy)] += 1
                result = ActionResult(
                    action=action,
                    target=name,
                    success=True,
                    strategy=strategy,
                    attempts=tuple(attempts),
                )
                if result.used_fallback:
                    LOGGER.info(
                        "action_fallback",
                        extra={"action": action, "target": name, "strategy": strategy},
                    )
                return result

        LOGGER.warning(
            "action_failed",
            extra={"action": action, "target": name, "attempts": len(attempts)},
        )
        return ActionResult(
            action=action,
            target=name,
            success=False,
            strategy=None,
            attempts=tuple(attempts),
            error=attempts[-1][1] if attempts else None,
        )

    def _run_rung(
        self,
        strategy: str,
        handle: Locator,
        operation: Operation,
        script: ScriptHandler,
    ) -> None:
        timeout = self.attempt_timeout_ms
        if strategy == "native":
            operation(handle, False, timeout)
        elif strategy == "scroll_into_view":
            handle.scroll_into_view_if_needed(timeout=timeout)
            operation(handle, False, timeout)
        elif strategy == "force":
            operation(handle, True, timeout)
        else:
            script(handle)


def _describe(target: Locator | ResolvedElement) -> str:
    if isinstance(target, ResolvedElement):
        return target.spec_name
    return str(target)


def _first_line(exc: BaseException) -> str:
    text = str(exc).strip()
    return text.splitlines()[0] if text else type(exc).__name__
