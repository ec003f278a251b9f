from __future__ import annotations

from typing import Callable, Dict, Generic, Hashable, Iterable, Iterator, List, Optional, Tuple, TypeVar

from .errors import PagedContentInvariantError
from .page import Fetch, KeyFn, Page, element_id

T = TypeVar("T")

ContentObserver = Callable[["PagedContent[T]"], None]


class PagedContent(Generic[T]):
    """
    Ordered pages of a bidirectional stream.

    Index 0 is the newest known boundary, the last index the oldest known one:
    - pages[0].previous fetches newer content and is prepended
    - pages[-1].next fetches older content and is appended

    Positions are tracked with sequence numbers instead of list scans: prepend
    takes head_seq - 1, append takes head_seq + len, so index = seq - head_seq.
    """

    def __init__(self, pages: Iterable[Page[T]] = (), *, key: KeyFn = element_id) -> None:
        self.key = key
        self._pages: List[Page[T]] = []
        self._seq: Dict[str, int] = {}
        self._head_seq = 0
        self._element_pages: Dict[Hashable, List[str]] = {}
        self._observers: List[ContentObserver] = []
        for page in pages:
            self._insert(page, at_front=False)

    # -----------------------------
    # Read side
    # -----------------------------
    @property
    def pages(self) -> Tuple[Page[T], ...]:
        return tuple(self._pages)

    @property
    def is_empty(self) -> bool:
        return not self._pages

    @property
    def head(self) -> Optional[Page[T]]:
        return self._pages[0] if self._pages else None

    @property
    def tail(self) -> Optional[Page[T]]:
        return self._pages[-1] if self._pages else None

    @property
    def previous_cursor(self) -> Optional[Fetch]:
        """Cursor toward newer content: the head page's `previous`."""
        head = self.head
        return head.previous if head is not None else None

    @property
    def next_cursor(self) -> Optional[Fetch]:
        """Cursor toward older content: the tail page's `next`."""
        tail = self.tail
        return tail.next if tail is not None else None

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[Page[T]]:
        return iter(list(self._pages))

    def __contains__(self, page_id: object) -> bool:
        return page_id in self._seq

    def index_of(self, page_id: str) -> Optional[int]:
        seq = self._seq.get(page_id)
        return None if seq is None else seq - self._head_seq

    def page(self, page_id: str) -> Page[T]:
        idx = self.index_of(page_id)
        if idx is None:
            raise PagedContentInvariantError(f"Page {page_id} not found in content")
        return self._pages[idx]

    def pages_containing(self, eid: Hashable) -> List[Page[T]]:
        return [self.page(pid) for pid in self._element_pages.get(eid, [])]

    def elements(self, predicate: Optional[Callable[[T], bool]] = None) -> Iterator[T]:
        """All elements in display order, optionally filtered (e.g. hide boosts)."""
        for page in list(self._pages):
            for e in page.elements:
                if predicate is None or predicate(e):
                    yield e

    # -----------------------------
    # Observers (presentation bindings)
    # -----------------------------
    def observe(self, fn: ContentObserver) -> Callable[[], None]:
        self._observers.append(fn)

        def _unsubscribe() -> None:
            if fn in self._observers:
                self._observers.remove(fn)

        return _unsubscribe

    def _changed(self) -> None:
        for fn in list(self._observers):
            fn(self)

    # -----------------------------
    # Write side
    # -----------------------------
    def prepend(self, page: Page[T]) -> None:
        self._insert(page, at_front=True)
        self._changed()

    def append(self, page: Page[T]) -> None:
        self._insert(page, at_front=False)
        self._changed()

    def replace(self, page_id: str, page: Page[T]) -> None:
        """Replace the page with `page_id` in place, keeping its index."""
        idx = self.index_of(page_id)
        if idx is None:
            raise PagedContentInvariantError(
                f"Could not find page {page_id} to replace; the reference is stale"
            )
        if page.id != page_id and page.id in self._seq:
            raise PagedContentInvariantError(f"Duplicate page id {page.id}")

        old = self._pages[idx]
        self._unindex_elements(old)
        seq = self._seq.pop(old.id)
        self._seq[page.id] = seq
        self._pages[idx] = page
        self._index_elements(page)
        self._changed()

    def replace_element(self, element: T, *, page_id: Optional[str] = None) -> List[Page[T]]:
        """
        Identity-preserving element update.

        With page_id, only that page is touched; otherwise every page holding an
        element with the same id (duplicates across pages stay in sync).
        Returns the replacement pages.
        """
        eid = self.key(element)
        if page_id is not None:
            targets = [self.page(page_id)]
        else:
            targets = self.pages_containing(eid)
            if not targets:
                raise PagedContentInvariantError(f"Could not find element {eid!r} in any page")

        replaced: List[Page[T]] = []
        for old in targets:
            new = old.replacing_element(element, key=self.key)
            idx = self._seq[old.id] - self._head_seq
            self._pages[idx] = new
            replaced.append(new)

        self._changed()
        return replaced

    def _insert(self, page: Page[T], *, at_front: bool) -> None:
        if page.id in self._seq:
            raise PagedContentInvariantError(f"Duplicate page id {page.id}")
        if at_front:
            self._head_seq -= 1
            self._seq[page.id] = self._head_seq
            self._pages.insert(0, page)
        else:
            self._seq[page.id] = self._head_seq + len(self._pages)
            self._pages.append(page)
        self._index_elements(page)

    def _index_elements(self, page: Page[T]) -> None:
        for eid in page.element_ids(self.key):
            ids = self._element_pages.setdefault(eid, [])
            if page.id not in ids:
                ids.append(page.id)

    def _unindex_elements(self, page: Page[T]) -> None:
        for eid in page.element_ids(self.key):
            ids = self._element_pages.get(eid)
            if not ids:
                continue
            if page.id in ids:
                ids.remove(page.id)
            if not ids:
                del self._element_pages[eid]
