from __future__ import annotations


class PagedContentInvariantError(AssertionError):
    """
    Raised when a caller's page/element reference no longer matches the content.

    This is a programming error (stale reference, duplicate page id), not a
    runtime condition to recover from, so it is never routed to an error handler.
    """
