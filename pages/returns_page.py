from __future__ import annotations

import logging
from dataclasses import dataclass

from config import ROUTES
from pages.base_page import BasePage
from qa_core.locators import LocatorSpec
from qa_core.readiness import NETWORK_SETTLED
from qa_core.text import normalize_whitespace

LOGGER = logging.getLogger("qa.pages.returns")

PENDING_STATUSES = ("pending", "awaiting", "processing")


@dataclass(frozen=True)
class ReturnRow:
    return_id: str
    status: str
    date_added: str
    order_id: str

    @property
    def is_pending(self) -> bool:
        return any(word in self.status.lower() for word in PENDING_STATUSES)


def parse_return_row(cells: list[str]) -> ReturnRow | None:
    """Build a row from ``Return ID | Status | Date Added | Order ID | ...`` cells.

    Header rows and anything without a numeric return id yield None.
    """

    if len(cells) < 4:
        return None
    return_id = cells[0].lstrip("#").strip()
    if not return_id.isdigit():
        return None
    return ReturnRow(
        return_id=return_id,
        status=cells[1],
        date_added=cells[2],
        order_id=cells[3].lstrip("#").strip(),
    )


class ReturnsPage(BasePage):
    """Customer's product return requests, newest first."""

    READY = NETWORK_SETTLED

    ROWS = LocatorSpec.of("return rows", "#content .table-responsive table tbody tr", "#content table tbody tr")
    EMPTY_MESSAGE = LocatorSpec.of(
        "no returns message",
        "#content p:text-matches('not made any previous returns|no returns', 'i')",
    )

    def open(self) -> ReturnsPage:
        self.navigate(ROUTES["returns"])
        return self

    def rows(self) -> list[ReturnRow]:
        parsed: list[ReturnRow] = []
        for handle in self.locator.resolve_all(self.ROWS, timeout_ms=0, required=False):
            cells = handle.locator("td")
            texts = [
                normalize_whitespace(self.query(cells.nth(i).text_content, "", event="return_cell_unreadable"))
                for i in range(self.get_count(cells))
            ]
            row = parse_return_row(texts)
            if row is not None:
                parsed.append(row)
        return parsed

    def return_count(self) -> int:
        self.wait_until(
            lambda: self.get_count(self.ROWS) > 0 or self.is_visible(self.EMPTY_MESSAGE),
            description="returns rendered",
        )
        return len(self.rows())

    def is_empty(self) -> bool:
        return self.return_count() == 0

    def most_recent_status(self) -> str:
        rows = self.rows()
        return rows[0].status if rows else ""

    def has_pending_return(self, order_id: str | None = None) -> bool:
        return any(row.is_pending and (order_id is None or row.order_id == order_id) for row in self.rows())
