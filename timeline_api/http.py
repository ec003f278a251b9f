from __future__ import annotations

from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Dict, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import events
from .constants import DEFAULT_BACKOFF_FACTOR, RETRY_STATUSES, USER_AGENT
from .errors import ApiError, AuthError, NetworkError, RateLimitError, TransientHttpError
from .request import PartialRequest


# =========================================
# SECTION A: SESSION
# Why: one pooled session per client with transport-level retries; the paging
# core never retries on its own.
# =========================================
def requests_retry_session(
    retries: int,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
    status_forcelist: Tuple[int, ...] = RETRY_STATUSES,
    session: Optional[requests.Session] = None,
) -> requests.Session:
    """
    Creates a requests.Session with a retry strategy for idempotent reads.

    - Retries 429 and gateway 5xx codes, honouring Retry-After.
    - raise_on_status=False: req_json maps the final status to a typed error.
    """
    sess = session or requests.Session()

    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=backoff_factor,
        status_forcelist=status_forcelist,
        allowed_methods={"GET", "HEAD"},
        raise_on_status=False,
        respect_retry_after_header=True,
    )

    adapter = HTTPAdapter(max_retries=retry, pool_connections=4, pool_maxsize=4)
    sess.mount("http://", adapter)
    sess.mount("https://", adapter)
    sess.headers.update({"Accept": "application/json", "User-Agent": USER_AGENT})
    return sess


# =========================================
# SECTION B: RESPONSE
# =========================================
@dataclass(frozen=True)
class ApiResponse:
    data: Any
    status: int
    links: Dict[str, str] = field(default_factory=dict)  # rel -> absolute URL


def _links(resp: requests.Response) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for rel, link in (getattr(resp, "links", None) or {}).items():
        url = link.get("url") if isinstance(link, dict) else None
        if url:
            out[str(rel)] = url
    return out


def _is_html_response(resp: requests.Response) -> bool:
    ct = (resp.headers.get("Content-Type") or "").lower()
    head = resp.text[:200].lower() if resp.text else ""
    return ("text/html" in ct) or ("<html" in head)


def _body_excerpt(resp: requests.Response, n: int = 2000) -> str:
    try:
        return (resp.text or "")[:n]
    except Exception:
        return ""


def _raise_for_status(resp: requests.Response) -> None:
    status = resp.status_code
    if 200 <= status < 300:
        return

    body = _body_excerpt(resp)
    if status in (401, 403):
        raise AuthError(status, body, f"Auth error {status}: check the access token and its scopes")
    if status == 429:
        retry_after = resp.headers.get("Retry-After") or ""
        try:
            retry_after_s = float(retry_after)
        except ValueError:
            retry_after_s = 0.0
        raise RateLimitError(retry_after_s, body)
    if status in (408, 425) or 500 <= status <= 599:
        raise TransientHttpError(status, body)
    raise ApiError(status, body)


# =========================================
# SECTION C: HTTP CORE
# Why: every request has a timeout, emits start/ok/error events, and fails
# with a typed error the caller's error handler can render.
# =========================================
def req_json(
    session: requests.Session,
    request: PartialRequest,
    *,
    stream: str,
    timeout: Tuple[float, float],
) -> ApiResponse:
    if not request.url:
        raise ValueError("Request has no URL")

    method = request.method.upper()
    url = request.url
    events.http_start(stream=stream, method=method, url=url, extra={"param_keys": sorted(k for k, _ in request.params)})

    t0 = perf_counter()
    try:
        resp = session.request(
            method=method,
            url=url,
            headers=request.header_dict(),
            params=request.params or None,
            data=request.body,
            timeout=timeout,
        )
    except (requests.Timeout, requests.ConnectionError) as e:
        elapsed_ms = int((perf_counter() - t0) * 1000)
        events.http_error(stream=stream, method=method, url=url, status=None, error=repr(e), elapsed_ms=elapsed_ms)
        raise NetworkError(f"{method} {url} failed: {e}") from e

    elapsed_ms = int((perf_counter() - t0) * 1000)

    try:
        _raise_for_status(resp)
        if _is_html_response(resp):
            raise ApiError(resp.status_code, _body_excerpt(resp), "Endpoint returned HTML instead of JSON")
        if not resp.content:
            data: Any = None
        else:
            try:
                data = resp.json()
            except ValueError as e:
                raise ApiError(resp.status_code, _body_excerpt(resp), f"Failed to decode JSON: {e}") from e
    except ApiError as e:
        events.http_error(
            stream=stream,
            method=method,
            url=url,
            status=e.status_code,
            error=str(e),
            elapsed_ms=elapsed_ms,
        )
        raise

    links = _links(resp)
    events.http_ok(
        stream=stream,
        method=method,
        url=url,
        elapsed_ms=elapsed_ms,
        status=resp.status_code,
        items_count=len(data) if isinstance(data, list) else None,
        links=list(links),
    )
    return ApiResponse(data=data, status=resp.status_code, links=links)
