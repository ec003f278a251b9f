from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import requests

from pagedcontent.events import emit
from pagedcontent.page import Fetch, Page

from . import events
from .config import MastodonConfig
from .constants import REL_NEXT, REL_PREV
from .errors import ApiError
from .http import ApiResponse, req_json, requests_retry_session
from .request import URL, Bearer, Path, PartialRequest, Query, compose
from .timeline import Timeline

Status = Dict[str, Any]


def as_statuses(data: Any, *, stream: str) -> List[Status]:
    if not isinstance(data, list):
        raise ApiError(None, repr(data)[:200], f"Expected a JSON array of statuses, got {type(data).__name__}")
    out = [s for s in data if isinstance(s, dict) and s.get("id") is not None]
    if len(out) != len(data):
        emit("message", "http.payload.skipped", stream=stream, level="warn", skipped=len(data) - len(out))
    return out


class MastodonClient:
    """
    Timeline API client that turns responses into cursor-bearing Pages.

    Cursors come from the Link header: rel="next" walks toward older statuses
    (max_id), rel="prev" toward newer ones (min_id). Blocking HTTP runs in a
    worker thread; the awaiting coroutine resumes on the caller's loop.
    """

    def __init__(self, cfg: MastodonConfig, session: Optional[requests.Session] = None) -> None:
        self.cfg = cfg
        self._session = session or requests_retry_session(cfg.request_retries)

    def close(self) -> None:
        self._session.close()

    @property
    def timeout(self):
        return (self.cfg.request_connect_timeout_s, self.cfg.request_timeout_s)

    # -----------------------------
    # Requests
    # -----------------------------
    def timeline_request(self, timeline: Timeline) -> PartialRequest:
        return compose(timeline.fragments(limit=self.cfg.page_limit), Bearer(self.cfg.access_token))

    def link_request(self, url: str) -> PartialRequest:
        return compose(URL(url), Bearer(self.cfg.access_token))

    def min_id_request(self, timeline: Timeline, min_id: Any) -> PartialRequest:
        return compose(
            timeline.fragments(limit=self.cfg.page_limit),
            Query("min_id", min_id),
            Bearer(self.cfg.access_token),
        )

    def get(self, request: PartialRequest, *, stream: str) -> ApiResponse:
        return req_json(self._session, request, stream=stream, timeout=self.timeout)

    async def fetch(self, request: PartialRequest, *, stream: str) -> ApiResponse:
        return await asyncio.to_thread(self.get, request, stream=stream)

    # -----------------------------
    # Pages + cursors
    # -----------------------------
    def timeline_loader(self, timeline: Timeline) -> Fetch:
        """Initial (refresh) loader: the head page of the timeline."""
        # The head request reads newest-first, so an empty result re-polls it like rel="prev".
        return self.cursor(timeline, self.timeline_request(timeline), rel=REL_PREV)

    def cursor(self, timeline: Timeline, request: PartialRequest, *, rel: str) -> Fetch:
        async def _fetch() -> Page[Status]:
            return await self.fetch_page(timeline, request, rel=rel)

        return _fetch

    async def fetch_page(self, timeline: Timeline, request: PartialRequest, *, rel: str = REL_NEXT) -> Page[Status]:
        stream = str(timeline.timeline_type)
        resp = await self.fetch(request, stream=stream)
        statuses = as_statuses(resp.data, stream=stream)
        return self.page_from_response(timeline, request, statuses, resp.links, rel=rel)

    def page_from_response(
        self,
        timeline: Timeline,
        request: PartialRequest,
        statuses: List[Status],
        links: Dict[str, str],
        *,
        rel: str,
    ) -> Page[Status]:
        stream = str(timeline.timeline_type)

        next_cursor: Optional[Fetch] = None
        if links.get(REL_NEXT) and statuses:
            next_cursor = self.cursor(timeline, self.link_request(links[REL_NEXT]), rel=REL_NEXT)
            events.cursor_built(stream=stream, rel=REL_NEXT, source="link")

        previous_cursor: Optional[Fetch] = None
        if links.get(REL_PREV):
            previous_cursor = self.cursor(timeline, self.link_request(links[REL_PREV]), rel=REL_PREV)
            events.cursor_built(stream=stream, rel=REL_PREV, source="link")
        elif rel == REL_PREV and not statuses:
            # Nothing newer yet: keep polling from the same boundary.
            previous_cursor = self.cursor(timeline, request, rel=REL_PREV)
            events.cursor_built(stream=stream, rel=REL_PREV, source="repoll")
        elif statuses and self.cfg.min_id_fallback:
            previous_cursor = self.cursor(timeline, self.min_id_request(timeline, statuses[0]["id"]), rel=REL_PREV)
            events.cursor_built(stream=stream, rel=REL_PREV, source="min_id")

        return Page(elements=tuple(statuses), previous=previous_cursor, next=next_cursor)

    # -----------------------------
    # Single statuses (live updates)
    # -----------------------------
    async def fetch_status(self, status_id: Any) -> Status:
        request = compose(
            URL(self.cfg.base_url),
            Path(f"/api/v1/statuses/{status_id}"),
            Bearer(self.cfg.access_token),
        )
        resp = await self.fetch(request, stream="statuses")
        if not isinstance(resp.data, dict) or resp.data.get("id") is None:
            raise ApiError(resp.status, repr(resp.data)[:200], "Expected a status object")
        return resp.data
