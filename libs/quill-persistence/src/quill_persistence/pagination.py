"""Offset pagination — resolves client ``page``/``limit`` into a safe skip/limit window.

The arithmetic is shared by every list endpoint; only the count filter
differs between them.  Out-of-range input never errors:

* a ``limit`` outside ``[0, MAX_PAGE_LIMIT]`` becomes ``0`` (an empty page),
* a ``page`` past the last page (or below 1) falls back to the first page.

>>> window = resolve_page_window(page=99, limit=10, doc_count=3, page_size=10)
>>> (window.page_index, window.skip, window.limit)
(0, 0, 10)
"""

from __future__ import annotations

import math
from dataclasses import dataclass

MAX_PAGE_LIMIT = 20


@dataclass(frozen=True)
class PageWindow:
    """A resolved page: which page, how many to skip, how many to return."""

    page_index: int
    total_pages: int
    skip: int
    limit: int


def clamp_limit(limit: int, *, max_limit: int = MAX_PAGE_LIMIT) -> int:
    """Return *limit* if it lies in ``[0, max_limit]``, else ``0``."""
    if 0 <= limit <= max_limit:
        return limit
    return 0


def total_pages(doc_count: int, page_size: int) -> int:
    """Number of pages of *page_size* documents needed for *doc_count* documents."""
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    if doc_count <= 0:
        return 0
    return math.ceil(doc_count / page_size)


def resolve_page_index(page: int, doc_count: int, page_size: int) -> int:
    """Convert a 1-based client *page* into a 0-based page index.

    ``page - 1`` is kept when it lies in ``[0, total_pages]``; anything else
    resolves to ``0``.  With no documents every page resolves to ``0``.
    """
    index = page - 1
    if 0 <= index <= total_pages(doc_count, page_size):
        return index
    return 0


def resolve_page_window(page: int, limit: int, doc_count: int, page_size: int) -> PageWindow:
    """Resolve *page* and *limit* against a live *doc_count*.

    The skip offset is always ``page_index * page_size``: pages are laid out
    by the configured page size, while *limit* only bounds how many of the
    page's documents are returned.
    """
    index = resolve_page_index(page, doc_count, page_size)
    return PageWindow(
        page_index=index,
        total_pages=total_pages(doc_count, page_size),
        skip=index * page_size,
        limit=clamp_limit(limit),
    )
