# timeline_api/events.py
from __future__ import annotations

from typing import Any, Dict, Optional

from pagedcontent.events import emit


def http_start(*, stream: str, method: str, url: str, extra: Optional[Dict[str, Any]] = None) -> None:
    emit(
        "message",
        "http.request.start",
        stream=stream,
        level="debug",
        method=method,
        url=url,
        **(extra or {}),
    )


def http_ok(
    *,
    stream: str,
    method: str,
    url: str,
    elapsed_ms: int,
    status: int,
    items_count: Optional[int] = None,
    links: Optional[list] = None,
) -> None:
    fields: Dict[str, Any] = {"method": method, "url": url, "elapsed_ms": elapsed_ms, "status": status}
    if isinstance(items_count, int):
        fields["items_count"] = items_count
    if links:
        fields["links"] = sorted(links)
    emit("message", "http.request.ok", stream=stream, **fields)


def http_error(
    *,
    stream: str,
    method: str,
    url: str,
    status: Optional[int],
    error: str,
    elapsed_ms: Optional[int] = None,
) -> None:
    emit(
        "message",
        "http.request.error",
        stream=stream,
        level="error",
        method=method,
        url=url,
        status=status,
        elapsed_ms=elapsed_ms,
        error=error[:1000],
    )


def cursor_built(*, stream: str, rel: str, source: str) -> None:
    emit("message", "paging.cursor.built", stream=stream, level="debug", rel=rel, source=source)
