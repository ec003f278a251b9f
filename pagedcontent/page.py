from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Generic, Hashable, List, Mapping, Optional, Tuple, TypeVar

from .errors import PagedContentInvariantError

T = TypeVar("T")

# A cursor: zero-argument coroutine function that fetches the adjacent page.
Fetch = Callable[[], Awaitable["Page[Any]"]]
KeyFn = Callable[[Any], Hashable]


def element_id(element: Any) -> Hashable:
    """Stable identity of an element: decoded JSON uses ["id"], objects use .id."""
    if isinstance(element, Mapping):
        return element["id"]
    return element.id


def new_page_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, eq=False)
class Page(Generic[T]):
    """
    One fetched batch of elements plus optional continuation cursors.

    - previous: fetches the page before this one (newer content); None = head-terminal
    - next: fetches the page after this one (older content); None = tail-terminal
    - id: assigned at materialization; two identical fetches are distinct pages

    Equality and hashing go by id only. "Updating" a page means building a
    replacement that keeps the id (see `replacing`).
    """
    elements: Tuple[T, ...] = ()
    previous: Optional[Fetch] = None
    next: Optional[Fetch] = None
    id: str = field(default_factory=new_page_id)

    def __post_init__(self) -> None:
        if not isinstance(self.elements, tuple):
            object.__setattr__(self, "elements", tuple(self.elements))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Page):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __len__(self) -> int:
        return len(self.elements)

    def __repr__(self) -> str:
        return (
            f"Page(id={self.id[:8]}, elements={len(self.elements)}, "
            f"previous={'yes' if self.previous else 'no'}, next={'yes' if self.next else 'no'})"
        )

    def element_ids(self, key: KeyFn = element_id) -> List[Hashable]:
        return [key(e) for e in self.elements]

    def index_of(self, eid: Hashable, key: KeyFn = element_id) -> Optional[int]:
        for idx, e in enumerate(self.elements):
            if key(e) == eid:
                return idx
        return None

    def replacing(self, **changes: Any) -> "Page[T]":
        """Copy with new elements and/or cursors, keeping the same id."""
        if "id" in changes:
            raise TypeError("Page.replacing() keeps the page id; build a new Page instead")
        return replace(self, **changes)

    def replacing_element(self, element: T, key: KeyFn = element_id) -> "Page[T]":
        """Swap in `element` at every position holding its id."""
        eid = key(element)
        if self.index_of(eid, key) is None:
            raise PagedContentInvariantError(f"Element {eid!r} not found in page {self.id}")
        return self.replacing(elements=tuple(element if key(e) == eid else e for e in self.elements))
