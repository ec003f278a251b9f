from __future__ import annotations

import asyncio
import json
import os
import threading
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional

from pagedcontent.content import PagedContent
from pagedcontent.coordinator import FetchCoordinator
from pagedcontent.events import RuntimeEvent
from pagedcontent.page import Page
from timeline_api.client import MastodonClient, Status
from timeline_api.errors import ApiError, NetworkError
from timeline_api.timeline import Timeline

from .constants import EVENT_LOG_ENV, EVENT_TAIL


class EventTap:
    """
    Event sink for pagedcontent.events (install with `emitting`).

    HTTP events arrive from worker threads, so writes are serialised with a lock.
    Keeps the last few events for the view footer and optionally appends JSONL.
    """

    def __init__(self, path: Optional[str] = None, *, keep: int = EVENT_TAIL) -> None:
        self.path = path if path is not None else (os.getenv(EVENT_LOG_ENV) or None)
        self.recent: Deque[RuntimeEvent] = deque(maxlen=keep)
        self._lock = threading.Lock()

    def __call__(self, ev: RuntimeEvent) -> None:
        with self._lock:
            self.recent.append(ev)
            if not self.path:
                return
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(ev.to_dict(), default=str, ensure_ascii=False) + "\n")


class TimelineSession:
    """
    One open timeline: client + content + coordinator on a private event loop.

    Every action runs on that loop, so the coordinator's splices and the
    element replacements below all happen on the single owning context.
    """

    def __init__(
        self,
        client: MastodonClient,
        timeline: Timeline,
        *,
        on_error: Optional[Callable[[BaseException], None]] = None,
    ) -> None:
        self.client = client
        self.timeline = timeline
        self.errors: List[BaseException] = []
        self._on_error = on_error
        self._loop = asyncio.new_event_loop()
        self.content: PagedContent[Status] = PagedContent()
        self.coordinator: FetchCoordinator[Status] = FetchCoordinator(
            self.content,
            initial=client.timeline_loader(timeline),
            on_error=self._handle_error,
            stream=str(timeline.timeline_type),
        )

    def __enter__(self) -> "TimelineSession":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        if not self._loop.is_closed():
            self._loop.run_until_complete(self._loop.shutdown_default_executor())
            self._loop.close()
        self.client.close()

    def _handle_error(self, exc: BaseException) -> None:
        self.errors.append(exc)
        if self._on_error is not None:
            self._on_error(exc)

    def take_errors(self) -> List[BaseException]:
        errs, self.errors = self.errors, []
        return errs

    def run(self, coro):
        return self._loop.run_until_complete(coro)

    # -----------------------------
    # Actions
    # -----------------------------
    def refresh(self) -> Optional[Page[Status]]:
        return self.run(self.coordinator.refresh())

    def newer(self) -> Optional[Page[Status]]:
        return self.run(self.coordinator.fetch_newer())

    def older(self) -> Optional[Page[Status]]:
        return self.run(self.coordinator.fetch_older())

    def apply_status_update(self, status: Status) -> List[Page[Status]]:
        """Live update of a status already on screen (identity-preserving)."""
        return self.content.replace_element(status)

    def reload_status(self, status_id: Any) -> Optional[Status]:
        """Re-fetch one status and swap it into every page that shows it."""
        try:
            status = self.run(self.client.fetch_status(status_id))
        except (ApiError, NetworkError) as e:
            self._handle_error(e)
            return None
        self.apply_status_update(status)
        return status

    def status_ids(self) -> List[Any]:
        return [s["id"] for s in self.content.elements()]

    def summary(self) -> Dict[str, Any]:
        return {
            "timeline": self.timeline.title,
            "pages": len(self.content),
            "statuses": sum(len(p) for p in self.content),
            "state": self.coordinator.state,
            "has_newer": self.content.previous_cursor is not None,
            "has_older": self.content.next_cursor is not None,
        }
