"""
Mastodon timeline client.

Builds cursor-bearing `pagedcontent.Page`s from the timelines API so a
`pagedcontent.FetchCoordinator` can walk a timeline in both directions.
"""
from __future__ import annotations

from .client import MastodonClient, Status  # noqa: F401
from .config import MastodonConfig  # noqa: F401
from .errors import ApiError, AuthError, NetworkError, RateLimitError, TransientHttpError  # noqa: F401
from .timeline import Timeline, TimelineType, parse_timeline  # noqa: F401

__all__ = [
    "ApiError",
    "AuthError",
    "MastodonClient",
    "MastodonConfig",
    "NetworkError",
    "RateLimitError",
    "Status",
    "Timeline",
    "TimelineType",
    "TransientHttpError",
    "parse_timeline",
]
