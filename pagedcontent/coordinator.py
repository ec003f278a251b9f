from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar, Union

from . import events
from .content import PagedContent
from .errors import PagedContentInvariantError
from .page import Fetch, Page

T = TypeVar("T")

ErrorHandler = Callable[[BaseException], None]
InitialLoader = Callable[[], Awaitable[Union[Page[T], Sequence[Page[T]]]]]

OLDER = "older"
NEWER = "newer"
REFRESH = "refresh"

logger = logging.getLogger(__name__)


def log_fetch_error(exc: BaseException) -> None:
    """Default error handler: log and move on; the user may retry the direction."""
    logger.error("Page fetch failed: %s: %s", type(exc).__name__, exc)


class FetchCoordinator(Generic[T]):
    """
    Drives fetch older / fetch newer / refresh against one PagedContent.

    State is a single `is_fetching` flag shared by every direction: at most one
    fetch is in flight per content. The flag is checked and set with no await in
    between, so the check-then-set is atomic on the owning event loop, and it is
    cleared whenever the fetch resolves (success, failure or cancellation).

    Terminal directions and requests made while fetching are silent no-ops that
    return None. Fetch failures go to `on_error` and leave the content untouched.
    """

    def __init__(
        self,
        content: Optional[PagedContent[T]] = None,
        *,
        initial: Optional[InitialLoader] = None,
        on_error: Optional[ErrorHandler] = None,
        stream: str = "timeline",
    ) -> None:
        self.content: PagedContent[T] = content if content is not None else PagedContent()
        self.initial = initial
        self.on_error: ErrorHandler = on_error or log_fetch_error
        self.stream = stream
        self._is_fetching = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_fetching(self) -> bool:
        return self._is_fetching

    @property
    def state(self) -> str:
        return "fetching" if self._is_fetching else "idle"

    @property
    def can_fetch_older(self) -> bool:
        return not self._is_fetching and self.content.next_cursor is not None

    @property
    def can_fetch_newer(self) -> bool:
        return not self._is_fetching and self.content.previous_cursor is not None

    async def fetch_older(self) -> Optional[Page[T]]:
        """Append the page behind the tail's `next` cursor."""
        return await self._start(OLDER)

    async def fetch_newer(self) -> Optional[Page[T]]:
        """Prepend the page behind the head's `previous` cursor."""
        return await self._start(NEWER)

    async def refresh(self) -> Optional[Page[T]]:
        """
        Empty content: run the initial loader (one page or a list of pages).
        Non-empty content: re-fetch the head boundary, i.e. behave like fetch_newer.
        """
        if self.content.is_empty:
            return await self._start(REFRESH)
        return await self._start(NEWER)

    async def wait(self) -> None:
        """Wait for the in-flight fetch (if any) to resolve, without raising."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.wait([task])

    def _cursor_for(self, direction: str) -> Optional[Fetch]:
        if direction == OLDER:
            return self.content.next_cursor
        if direction == NEWER:
            return self.content.previous_cursor
        return self.initial

    async def _start(self, direction: str) -> Optional[Page[T]]:
        if self._is_fetching:
            events.fetch_dropped(stream=self.stream, direction=direction)
            return None

        fetch = self._cursor_for(direction)
        if fetch is None:
            events.fetch_terminal(stream=self.stream, direction=direction)
            return None

        self._is_fetching = True
        task = asyncio.ensure_future(self._run(direction, fetch))
        self._task = task
        # shield: a caller that stops awaiting does not cancel the fetch itself.
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            # Nobody will see what the splice raises now; hand it to the loop.
            task.add_done_callback(_report_unobserved)
            raise

    async def _run(self, direction: str, fetch: Callable[[], Awaitable]) -> Optional[Page[T]]:
        t0 = perf_counter()
        events.fetch_start(stream=self.stream, direction=direction, pages=len(self.content))
        try:
            try:
                result = await fetch()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                elapsed_ms = int((perf_counter() - t0) * 1000)
                events.fetch_error(stream=self.stream, direction=direction, elapsed_ms=elapsed_ms, error=e)
                self.on_error(e)
                return None

            spliced = self._splice(direction, result)
            elapsed_ms = int((perf_counter() - t0) * 1000)
            for page in spliced:
                events.fetch_ok(
                    stream=self.stream,
                    direction=direction,
                    page_id=page.id,
                    elapsed_ms=elapsed_ms,
                    items_count=len(page.elements),
                )
            return spliced[0] if spliced else None
        finally:
            self._is_fetching = False

    def _splice(self, direction: str, result: Union[Page[T], Sequence[Page[T]]]) -> List[Page[T]]:
        # Always splice against the current boundary, never one captured before the await.
        if direction == REFRESH:
            pages = [result] if isinstance(result, Page) else [_require_page(p) for p in result]
            self._require_new_ids(pages)
            for page in pages:
                self.content.append(page)
            return pages

        page = _require_page(result)
        if direction == OLDER:
            self.content.append(page)
        else:
            self.content.prepend(page)
        return [page]

    def _require_new_ids(self, pages: Sequence[Page[T]]) -> None:
        seen = set()
        for page in pages:
            if page.id in seen or page.id in self.content:
                raise PagedContentInvariantError(f"Duplicate page id {page.id}")
            seen.add(page.id)


def _require_page(value: object) -> Page:
    if not isinstance(value, Page):
        raise TypeError(f"Cursor returned {type(value).__name__}, expected Page")
    return value


def _report_unobserved(task: "asyncio.Future") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is None:
        return
    logger.error("Page splice failed with no caller waiting: %s: %s", type(exc).__name__, exc)
    task.get_loop().call_exception_handler(
        {
            "message": "Unobserved error while splicing a fetched page",
            "exception": exc,
            "future": task,
        }
    )
