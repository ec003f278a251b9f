"""
Paginated content model and its fetch protocol.

Public convenience exports:
  from pagedcontent import Page, PagedContent, FetchCoordinator
"""
from __future__ import annotations

from pagedcontent.content import PagedContent  # noqa: F401
from pagedcontent.coordinator import FetchCoordinator, log_fetch_error  # noqa: F401
from pagedcontent.errors import PagedContentInvariantError  # noqa: F401
from pagedcontent.page import Fetch, Page, element_id  # noqa: F401

__all__ = [
    "Fetch",
    "FetchCoordinator",
    "Page",
    "PagedContent",
    "PagedContentInvariantError",
    "element_id",
    "log_fetch_error",
]
