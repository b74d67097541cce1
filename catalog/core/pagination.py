"""Page window arithmetic for the product listing.

Page size is fixed. Requests for pages outside the valid range are
clamped, never rejected.
"""

import math
from dataclasses import dataclass
from typing import Any

PAGE_SIZE = 40
MAX_PAGE_LINKS = 7


@dataclass(frozen=True)
class PageWindow:
    """Resolved page and the 1-based item range it displays."""

    page: int
    total_pages: int
    total_items: int
    start: int
    end: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def total_pages_for(total_items: int, page_size: int = PAGE_SIZE) -> int:
    """Number of pages for a listing; at least 1 even when empty."""
    return max(1, math.ceil(max(total_items, 0) / page_size))


def clamp_page(requested: Any, total_pages: int) -> int:
    """Clamp a requested page into [1, total_pages].

    Non-numeric requests resolve to page 1.
    """
    try:
        page = int(requested)
    except (TypeError, ValueError, OverflowError):
        return 1
    return min(max(page, 1), max(total_pages, 1))


class PaginationController:
    """Tracks the listing size and resolves page requests against it."""

    def __init__(self, total_items: int = 0, page_size: int = PAGE_SIZE) -> None:
        self.page_size = page_size
        self.total_items = max(total_items, 0)

    @property
    def total_pages(self) -> int:
        return total_pages_for(self.total_items, self.page_size)

    def update_total(self, total_items: int) -> None:
        """Record the item count reported by the latest listing."""
        self.total_items = max(total_items, 0)

    def resolve(self, requested: Any) -> int:
        """Effective page for a request; never raises."""
        return clamp_page(requested, self.total_pages)

    def window(self, requested: Any) -> PageWindow:
        """Compute the displayed range for a page request.

        Args:
            requested: Requested page number (any value)

        Returns:
            PageWindow for the clamped page
        """
        page = self.resolve(requested)
        if self.total_items == 0:
            start = end = 0
        else:
            start = (page - 1) * self.page_size + 1
            end = min(page * self.page_size, self.total_items)
        return PageWindow(
            page=page,
            total_pages=self.total_pages,
            total_items=self.total_items,
            start=start,
            end=end,
        )

    def page_links(self, current: Any, limit: int = MAX_PAGE_LINKS) -> list[int]:
        """Page numbers to show as direct links, centred on the current page."""
        total = self.total_pages
        page = self.resolve(current)
        if total <= limit:
            return list(range(1, total + 1))
        first = min(max(page - limit // 2, 1), total - limit + 1)
        return list(range(first, first + limit))
