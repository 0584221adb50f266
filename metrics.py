"""Prometheus textfile metrics for pytest session summaries and UI flakiness.

Besides pass/fail counts, the session exports how often each interaction had
to fall back past a native click/fill and how often locators timed out; a
rising force/script share is the earliest sign the storefront markup drifted.
A fresh registry is built per write so repeated local runs do not leak state.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest


@dataclass(frozen=True)
class SessionMetrics:
    """Aggregate session counters exported at pytest session finish."""

    total: int
    passed: int
    failed: int
    skipped: int
    duration_seconds: float
    flaky: int = 0
    action_strategies: Mapping[tuple[str, str], int] = field(default_factory=dict)
    locator_timeouts: Mapping[str, int] = field(default_factory=dict)


def build_registry(summary: SessionMetrics) -> CollectorRegistry:
    registry = CollectorRegistry()
    outcomes = Gauge("qa_tests", "Tests by outcome", ["outcome"], registry=registry)
    outcomes.labels(outcome="total").set(summary.total)
    outcomes.labels(outcome="passed").set(summary.passed)
    outcomes.labels(outcome="failed").set(summary.failed)
    outcomes.labels(outcome="skipped").set(summary.skipped)
    outcomes.labels(outcome="flaky").set(summary.flaky)

    Gauge(
        "qa_test_session_duration_seconds",
        "Total pytest session duration in seconds",
        registry=registry,
    ).set(summary.duration_seconds)

    strategies = Counter(
        "qa_action_strategy",
        "Successful UI actions by the fallback rung that completed them",
        ["action", "strategy"],
        registry=registry,
    )
    for (action, strategy), count in sorted(summary.action_strategies.items()):
        strategies.labels(action=action, strategy=strategy).inc(count)

    timeouts = Counter(
        "qa_locator_timeouts",
        "Locator specs that never reached the wanted state",
        ["spec"],
        registry=registry,
    )
    for spec, count in sorted(summary.locator_timeouts.items()):
        timeouts.labels(spec=spec).inc(count)
    return registry


def write_metrics(path: str, summary: SessionMetrics) -> None:
    """Write metrics atomically to the Prometheus textfile collector path."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    # Write-then-rename avoids partially written files being scraped by Prometheus.
    tmp_path = target.with_suffix(f"{target.suffix}.tmp")
    tmp_path.write_bytes(generate_latest(build_registry(summary)))
    tmp_path.replace(target)
