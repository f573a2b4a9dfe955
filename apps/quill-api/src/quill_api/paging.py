"""``limit``/``page`` query chains shared by the list endpoints.

Both endpoints validate the same two query parameters; only the filter used
to count candidate documents differs, so it is passed in as a callable over
the values validated so far.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from quill_boundary import FieldChain, StepError, ValidationContext, query
from quill_persistence import DocumentStore, PageWindow, clamp_limit, resolve_page_window
from quill_persistence.protocols import Document

SANITIZATION_ERROR = "An error has occurred during sanitization"


def limit_chain(default_limit: int) -> FieldChain:
    """``limit`` defaults to *default_limit*; out-of-range values become ``0``."""

    def clamp(value: int, _ctx: ValidationContext) -> int:
        return clamp_limit(value)

    return query("limit", "Limit query must have valid format").default(default_limit).trim().is_int().sanitize(clamp)


def page_chain(
    store: DocumentStore,
    page_size: int,
    count_filter: Callable[[dict[str, Any]], Document],
) -> FieldChain:
    """``page`` resolves to a :class:`PageWindow` against a live document count.

    Must come after every chain *count_filter* reads from. The count is
    skipped, and the field fails, when an earlier field already failed.
    """

    async def resolve_page(value: int, ctx: ValidationContext) -> PageWindow:
        if ctx.has_errors:
            raise StepError(SANITIZATION_ERROR)
        doc_count = await store.count(count_filter(ctx.values))
        return resolve_page_window(value, ctx.values.get("limit", 0), doc_count, page_size)

    return query("page", "Page query must have valid format").default(1).trim().is_int().sanitize(resolve_page)
