"""Normalize human-formatted storefront text into typed values.

parse_money() keeps the storefront's single-locale rule: every comma is a
thousands separator. That makes decimal-comma prices such as "€12,50" parse as
1250, which is a known ambiguity kept on purpose until the target locale is
confirmed to be multi-currency.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

MONEY_EPSILON = 0.005
LINE_TOTAL_TOLERANCE = 0.10

_CURRENCY_SYMBOLS = "$€£¥₹"
_CURRENCY_CODE = re.compile(r"\b(USD|EUR|GBP|JPY|INR)\b")
_NUMBER = re.compile(r"-?(?:\d+(?:\.\d+)?|\.\d+)")
# "1 234.56": a space (or narrow no-break space) used as a thousands separator.
_SPACED_THOUSANDS = re.compile(r"(?<![.\d])\d{1,3}(?:[ \xa0\u202f]\d{3})+(?!\d)")
_NOT_NUMERIC = re.compile(r"[^\d.,\-]")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True, eq=False)
class MoneyAmount:
    """Parsed magnitude plus an optional currency hint; compared numerically."""

    value: float
    currency: str | None = None

    def approx_equal(self, other: MoneyAmount | float, tolerance: float = MONEY_EPSILON) -> bool:
        other_value = other.value if isinstance(other, MoneyAmount) else float(other)
        return math.isclose(self.value, other_value, rel_tol=0.0, abs_tol=tolerance)

    def times(self, quantity: int | float) -> MoneyAmount:
        return MoneyAmount(round(self.value * quantity, 2), self.currency)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (MoneyAmount, int, float)):
            return self.approx_equal(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __float__(self) -> float:
        return self.value

    def __str__(self) -> str:
        prefix = self.currency or ""
        return f"{prefix}{self.value:,.2f}"


def normalize_whitespace(text: str | None) -> str:
    """Collapse runs of whitespace (including non-breaking spaces) and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text.replace("\xa0", " ")).strip()


def currency_hint(text: str) -> str | None:
    for char in text:
        if char in _CURRENCY_SYMBOLS:
            return char
    match = _CURRENCY_CODE.search(text.upper())
    return match.group(1) if match else None


def parse_money(text: str | None) -> MoneyAmount | None:
    """Extract the first amount in ``text``; None when there is no number at all.

    None and MoneyAmount(0.0) mean different things: "could not parse" versus
    "the price is zero". Callers must branch on ``is None``.
    """

    if not text:
        return None
    # Symbols are dropped so "-$5.00" keeps its sign; other text becomes a token break.
    unsigned = text.translate({ord(symbol): None for symbol in _CURRENCY_SYMBOLS})
    grouped = _SPACED_THOUSANDS.sub(lambda m: re.sub(r"\D", "", m.group(0)), unsigned)
    tokens = _NOT_NUMERIC.sub(" ", grouped).replace(",", "")
    match = _NUMBER.search(tokens)
    if match is None:
        return None
    return MoneyAmount(float(match.group(0)), currency_hint(text))


def parse_int(text: str | None) -> int | None:
    """First integer in ``text`` (quantities, counters such as "Compare (2)")."""
    if not text:
        return None
    match = re.search(r"-?\d+", text.replace(",", ""))
    return int(match.group(0)) if match else None
