"""Expected-vs-actual comparison results that explain themselves in assertion messages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from qa_core.text import normalize_whitespace


def names_match(expected: str, actual: str) -> bool:
    """Case-insensitive containment either way; listing pages truncate long names."""
    wanted = normalize_whitespace(expected).lower()
    shown = normalize_whitespace(actual).lower()
    if not wanted or not shown:
        return False
    return wanted in shown or shown in wanted


@dataclass(frozen=True)
class ProductVerification:
    """Which expected products were found on a page and which were not."""

    found: tuple[str, ...]
    missing: tuple[str, ...]
    actual: tuple[str, ...] = ()

    @property
    def all_found(self) -> bool:
        return not self.missing

    def describe(self) -> str:
        return (
            f"found={list(self.found)} missing={list(self.missing)} "
            f"on page={list(self.actual)}"
        )


def verify_products(expected: Iterable[str], actual: Iterable[str]) -> ProductVerification:
    shown = tuple(actual)
    found: list[str] = []
    missing: list[str] = []
    for name in expected:
        if any(names_match(name, candidate) for candidate in shown):
            found.append(name)
        else:
            missing.append(name)
    return ProductVerification(found=tuple(found), missing=tuple(missing), actual=shown)
