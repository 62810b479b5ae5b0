"""Pagination state machine."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

PAGE_SIZE_OPTIONS = (10, 25, 50, 100)
DEFAULT_PAGE_SIZE = 25


def validate_page_size(size: int) -> int:
    if size not in PAGE_SIZE_OPTIONS:
        allowed = ", ".join(str(s) for s in PAGE_SIZE_OPTIONS)
        raise ValueError(f"Unsupported page size {size}. Allowed: {allowed}")
    return size


@dataclass(frozen=True)
class PaginationWindow:
    """Current page, page size and known row count.

    All transitions return a new window. ``total_count`` may be an estimate
    (see ``on_result``) until the collaborator reports an exact total.
    """

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    total_count: int = 0
    exact: bool = True

    @property
    def total_pages(self) -> int:
        if self.total_count <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @property
    def limit(self) -> int:
        return self.page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def start_item(self) -> int:
        return 0 if self.total_count == 0 else self.offset + 1

    @property
    def end_item(self) -> int:
        return min(self.page * self.page_size, self.total_count)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def set_page_size(self, size: int) -> PaginationWindow:
        return replace(self, page_size=validate_page_size(size), page=1)

    def go_to_page(self, page: int) -> PaginationWindow:
        """Move to ``page``; requests outside 1..total_pages are ignored."""
        if page < 1 or page > self.total_pages:
            return self
        return replace(self, page=page)

    def next_page(self) -> PaginationWindow:
        return self.go_to_page(self.page + 1)

    def previous_page(self) -> PaginationWindow:
        return self.go_to_page(self.page - 1)

    def reset(self) -> PaginationWindow:
        """Back to page 1, for any change to model, filters, search or sort."""
        return replace(self, page=1)

    def on_result(self, row_count: int, total: int | None = None) -> PaginationWindow:
        """Update the row count from a query result.

        An explicit ``total`` is authoritative. Without one, a full page
        means there is probably at least one more row, so the total is
        estimated one past what has been seen; a short page pins the total
        exactly.
        """
        if total is not None:
            window = replace(self, total_count=max(0, int(total)), exact=True)
        elif row_count >= self.page_size:
            window = replace(self, total_count=self.offset + row_count + 1, exact=False)
        else:
            window = replace(self, total_count=self.offset + row_count, exact=True)

        # Keep 1 <= page <= max(1, total_pages).
        last = max(1, window.total_pages)
        if window.page > last:
            window = replace(window, page=last)
        return window

    def page_numbers(self, max_visible: int = 7) -> list[int | None]:
        """Page links to show; ``None`` marks an elided gap."""
        total = self.total_pages
        if total <= max_visible:
            return list(range(1, total + 1))

        current = self.page
        if current <= 3:
            return [1, 2, 3, 4, None, total]
        if current >= total - 2:
            return [1, None, total - 3, total - 2, total - 1, total]
        return [1, None, current - 1, current, current + 1, None, total]
