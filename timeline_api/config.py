from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .constants import (
    DEFAULT_CONNECT_TIMEOUT_S,
    DEFAULT_PAGE_LIMIT,
    DEFAULT_READ_TIMEOUT_S,
    DEFAULT_REQUEST_RETRIES,
    MAX_PAGE_LIMIT,
)


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    v = (os.getenv(name) or "").strip()
    if not v:
        return default
    try:
        n = int(v)
        return n if n > 0 else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    v = (os.getenv(name) or "").strip()
    if not v:
        return default
    try:
        n = float(v)
        return n if n > 0 else default
    except ValueError:
        return default


def normalise_host(host: str) -> str:
    h = (host or "").strip()
    for prefix in ("https://", "http://"):
        if h.lower().startswith(prefix):
            h = h[len(prefix):]
    return h.strip("/").lower()


@dataclass(frozen=True)
class MastodonConfig:
    # Instance host, e.g. "mastodon.social" (no scheme)
    host: str

    # Auth (secret), env/creds-driven; public timelines work without it
    access_token: Optional[str] = None

    # Paging
    page_limit: int = DEFAULT_PAGE_LIMIT

    # Request knobs
    request_timeout_s: float = DEFAULT_READ_TIMEOUT_S
    request_connect_timeout_s: float = DEFAULT_CONNECT_TIMEOUT_S
    request_retries: int = DEFAULT_REQUEST_RETRIES

    # Head pages without a Link rel="prev" get a min_id cursor
    min_id_fallback: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "host", normalise_host(self.host))
        object.__setattr__(self, "page_limit", max(1, min(int(self.page_limit), MAX_PAGE_LIMIT)))

    @property
    def base_url(self) -> str:
        return f"https://{self.host}"

    @staticmethod
    def from_env_and_creds(creds: dict, host: Optional[str] = None) -> "MastodonConfig":
        token = (
            creds.get("access_token")
            or creds.get("token")
            or creds.get("MASTODON_ACCESS_TOKEN")
            or os.getenv("MASTODON_ACCESS_TOKEN")
        )
        resolved_host = host or creds.get("host") or os.getenv("MASTODON_HOST") or ""
        if not normalise_host(resolved_host):
            raise ValueError("Mastodon host is required (pass host or set MASTODON_HOST)")

        return MastodonConfig(
            host=resolved_host,
            access_token=token,
            page_limit=_env_int("MASTODON_PAGE_LIMIT", DEFAULT_PAGE_LIMIT),
            request_timeout_s=_env_float("MASTODON_REQUEST_TIMEOUT_S", DEFAULT_READ_TIMEOUT_S),
            request_connect_timeout_s=_env_float("MASTODON_REQUEST_CONNECT_TIMEOUT_S", DEFAULT_CONNECT_TIMEOUT_S),
            request_retries=_env_int("MASTODON_REQUEST_RETRIES", DEFAULT_REQUEST_RETRIES),
            min_id_fallback=_env_bool("MASTODON_MIN_ID_FALLBACK", True),
        )
