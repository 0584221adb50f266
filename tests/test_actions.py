from __future__ import annotations

import pytest

from fakes import FakeLocator, FakeNode
from qa_core.actions import LADDER, STRATEGY_USAGE, ActionRetrier, onclick_handler
from qa_core.errors import ActionFailed
from qa_core.locators import ResolvedElement


def _target(node: FakeNode) -> FakeLocator:
    return FakeLocator([node], "button.btn-cart")


def test_native_click_is_tried_first() -> None:
    node = FakeNode()
    before = STRATEGY_USAGE[("click", "native")]

    result = ActionRetrier().click(_target(node))

    assert result.success
    assert result.strategy == "native"
    assert not result.used_fallback
    assert node.calls == [("click", False)]
    assert STRATEGY_USAGE[("click", "native")] == before + 1


def test_overlay_falls_through_to_force_click() -> None:
    node = FakeNode(errors={"click": "element is covered by <div class=overlay>"})

    result = ActionRetrier().click(_target(node))

    assert result.strategy == "force"
    assert result.used_fallback
    assert [strategy for strategy, _ in result.attempts] == ["native", "scroll_into_view", "force"]
    assert result.attempts[0][1] == "element is covered by <div class=overlay>"
    assert result.attempts[-1] == ("force", None)


def test_script_rung_runs_when_every_playwright_click_fails() -> None:
    clicked: list[bool] = []
    node = FakeNode(
        errors={"click": "not visible", "click:force": "detached"},
        on_click=lambda: clicked.append(True),
    )

    result = ActionRetrier().click(_target(node))

    assert result.strategy == "script"
    assert clicked == [True]


def test_exhausted_ladder_raises_with_attempt_chain() -> None:
    node = FakeNode(errors={"click": "a", "click:force": "b", "scroll": "c", "evaluate": "d"})

    with pytest.raises(ActionFailed) as excinfo:
        ActionRetrier().click(_target(node), description="cart remove[0]")

    error = excinfo.value
    assert error.action == "click"
    assert error.target == "cart remove[0]"
    assert [strategy for strategy, _ in error.attempts] == list(LADDER)
    assert error.attempts == (("native", "a"), ("scroll_into_view", "c"), ("force", "b"), ("script", "d"))


def test_retries_replay_the_whole_ladder_a_bounded_number_of_times() -> None:
    node = FakeNode(errors={"click": "a", "click:force": "b", "scroll": "c", "evaluate": "d"})

    result = ActionRetrier(retries=2).try_perform(
        "click",
        _target(node),
        lambda handle, force, timeout: handle.click(force=force, timeout=timeout),
        lambda handle: handle.evaluate("el => el.click()"),
    )

    assert not result.success
    assert len(result.attempts) == 3 * len(LADDER)
    assert result.error == "d"


def test_strategies_can_be_restricted() -> None:
    node = FakeNode(errors={"click": "covered"})

    with pytest.raises(ActionFailed) as excinfo:
        ActionRetrier(strategies=("native", "scroll_into_view")).click(_target(node))

    assert len(excinfo.value.attempts) == 2


def test_unknown_strategy_and_negative_retries_are_rejected() -> None:
    with pytest.raises(ValueError):
        ActionRetrier(strategies=("native", "teleport"))
    with pytest.raises(ValueError):
        ActionRetrier(retries=-1)


def test_resolved_element_reports_spec_name() -> None:
    element = ResolvedElement(handle=_target(FakeNode()), spec_name="checkout continue", strategy="#button-save", index=0)

    assert ActionRetrier().click(element).target == "checkout continue"


def test_fill_falls_back_to_script_and_passes_value() -> None:
    node = FakeNode(errors={"fill": "readonly", "fill:force": "readonly"})

    result = ActionRetrier().fill(_target(node), "30")

    assert result.strategy == "script"
    assert node.calls[-1] == ("evaluate", "30")


def test_check_and_uncheck_are_distinct_actions() -> None:
    node = FakeNode()
    retrier = ActionRetrier()

    assert retrier.check(_target(node)).action == "check"
    assert node.checked
    assert retrier.check(_target(node), checked=False).action == "uncheck"
    assert not node.checked


def test_select_needs_exactly_one_of_value_or_label() -> None:
    retrier = ActionRetrier()
    with pytest.raises(ValueError):
        retrier.select(_target(FakeNode()))
    with pytest.raises(ValueError):
        retrier.select(_target(FakeNode()), value="223", label="United States")


def test_onclick_handler_calls_the_page_function_with_the_element_id() -> None:
    node = FakeNode(
        attrs={"onclick": "cart.add('42', $(this).parent().find('input').val());"},
        errors={"click": "hidden until hover", "click:force": "hidden until hover"},
    )

    result = ActionRetrier().click(_target(node), handler=onclick_handler("cart.add"))

    assert result.strategy == "script"
    assert node.calls[-1] == ("evaluate", ["cart.add", "42"])


def test_onclick_handler_without_matching_call_counts_as_failed_rung() -> None:
    node = FakeNode(attrs={"onclick": "wishlist.add('7')"}, errors={"click": "x", "click:force": "y"})

    with pytest.raises(ActionFailed) as excinfo:
        ActionRetrier().click(_target(node), handler=onclick_handler("compare.add"))

    strategy, error = excinfo.value.attempts[-1]
    assert strategy == "script"
    assert "compare.add" in str(error)
