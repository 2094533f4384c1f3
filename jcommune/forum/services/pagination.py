"""Pagination helpers.

Topic pages and post redirects both work in 1-based pages over 1-based post
ordinals. Keep the math here so views and the post locator never compute
page boundaries differently.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PageRange:
    """Inclusive 1-based ordinal range shown on one page.

    An empty range (``start > end``) means there is nothing on that page.
    """

    start: int
    end: int

    @property
    def is_empty(self) -> bool:
        return self.start > self.end

    def __len__(self) -> int:
        return 0 if self.is_empty else self.end - self.start + 1

    def as_slice(self) -> slice:
        """0-based slice selecting this range from an ordered sequence."""
        if self.is_empty:
            return slice(0, 0)
        return slice(self.start - 1, self.end)


EMPTY_RANGE = PageRange(start=1, end=0)


def _require_page_size(page_size: int) -> None:
    if page_size <= 0:
        raise ValueError("page_size must be > 0")


def page_for_ordinal(ordinal: int, page_size: int) -> int:
    """Return the 1-based page holding the item at the 1-based ``ordinal``."""

    _require_page_size(page_size)
    if ordinal <= 0:
        raise ValueError("ordinal must be >= 1")
    return (ordinal - 1) // page_size + 1


def page_count(total_count: int, page_size: int) -> int:
    """Number of pages needed for ``total_count`` items (0 when empty)."""

    _require_page_size(page_size)
    if total_count < 0:
        raise ValueError("total_count must be >= 0")
    return (total_count + page_size - 1) // page_size


def range_for_page(page_index: int, page_size: int, total_count: int) -> PageRange:
    """Return the inclusive ordinal range for ``page_index``, clipped to ``total_count``.

    Pages past the last one yield an empty range rather than an error.
    """

    if page_index <= 0:
        raise ValueError("page_index must be >= 1")
    if page_index > page_count(total_count, page_size):
        return EMPTY_RANGE
    start = (page_index - 1) * page_size + 1
    end = min(page_index * page_size, total_count)
    return PageRange(start=start, end=end)


def page_window(current: int, total_pages: int, *, radius: int = 2) -> list[int]:
    """Page numbers to link around ``current``."""

    if total_pages <= 0:
        return []
    anchor = min(max(current, 1), total_pages)
    start_page = max(anchor - radius, 1)
    end_page = min(anchor + radius, total_pages)
    return list(range(start_page, end_page + 1))


def parse_page(raw: str | None, total_pages: int) -> int:
    """Turn a ``page`` query value into a page index.

    ``"last"`` jumps to the final page. Anything that is not a positive
    integer falls back to the first page. Values past the end are kept so
    the caller renders an empty page.
    """

    if raw == "last":
        return max(total_pages, 1)
    if raw in (None, ""):
        return 1
    try:
        page_number = int(raw)
    except (TypeError, ValueError):
        return 1
    return page_number if page_number >= 1 else 1
