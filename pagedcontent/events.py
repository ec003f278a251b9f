"""
Progress events from paging and HTTP code to whatever is presenting them.

Nothing here renders. The coordinator and the client call `emit`; the
browser installs a sink with `set_emitter` (or `emitting` for a scope).
Without a sink every emit is dropped.

  from pagedcontent.events import emit

  emit("message", "paging.fetch.start", stream="home", direction="older")
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, Optional

EventEmitter = Callable[["RuntimeEvent"], None]

_EMITTER: Optional[EventEmitter] = None


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class RuntimeEvent:
    type: str  # message|count
    message: str  # dotted name, e.g. "http.request.ok"
    stream: Optional[str] = None
    count: Optional[int] = None
    level: str = "info"  # info|warn|error|debug
    ts: str = field(default_factory=_utc_now)
    fields: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def set_emitter(fn: Optional[EventEmitter]) -> None:
    """Install (or with None, remove) the process-wide event sink."""
    global _EMITTER
    _EMITTER = fn


@contextmanager
def emitting(fn: EventEmitter) -> Iterator[EventEmitter]:
    """Route events to `fn` for the duration of the block, then restore the previous sink."""
    previous = _EMITTER
    set_emitter(fn)
    try:
        yield fn
    finally:
        set_emitter(previous)


def emit(
    event_type: str,
    message: str,
    *,
    stream: Optional[str] = None,
    count: Optional[int] = None,
    level: str = "info",
    **fields: Any,
) -> None:
    sink = _EMITTER
    if sink is None:
        return

    event = RuntimeEvent(
        type=str(event_type),
        message=str(message),
        stream=stream,
        count=count,
        level=str(level),
        fields=dict(fields),
    )
    try:
        sink(event)
    except Exception:
        # A broken sink must not fail the fetch that reported progress.
        return


# -----------------------------
# Fetch lifecycle helpers
# -----------------------------
def fetch_start(*, stream: str, direction: str, pages: int) -> None:
    emit("message", "paging.fetch.start", stream=stream, direction=direction, pages=pages)


def fetch_ok(*, stream: str, direction: str, page_id: str, elapsed_ms: int, items_count: int) -> None:
    emit(
        "count",
        "paging.fetch.ok",
        stream=stream,
        count=items_count,
        direction=direction,
        page_id=page_id,
        elapsed_ms=elapsed_ms,
    )


def fetch_error(*, stream: str, direction: str, elapsed_ms: int, error: BaseException) -> None:
    emit(
        "message",
        "paging.fetch.error",
        stream=stream,
        level="error",
        direction=direction,
        elapsed_ms=elapsed_ms,
        error_type=type(error).__name__,
        error=str(error)[:1000],
    )


def fetch_dropped(*, stream: str, direction: str) -> None:
    emit("message", "paging.fetch.dropped", stream=stream, level="debug", direction=direction)


def fetch_terminal(*, stream: str, direction: str) -> None:
    emit("message", "paging.fetch.terminal", stream=stream, level="debug", direction=direction)
