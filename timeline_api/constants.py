from __future__ import annotations

from typing import Final

USER_AGENT: Final[str] = "timeline-pager/1.0"

# Timelines API (path prefix is appended to https://{host})
TIMELINES_PATH: Final[str] = "/api/v1/timelines"

# Page size: Mastodon defaults to 20 statuses and caps at 40
DEFAULT_PAGE_LIMIT: Final[int] = 20
MAX_PAGE_LIMIT: Final[int] = 40

# Timeouts (seconds)
DEFAULT_CONNECT_TIMEOUT_S: Final[float] = 10.0
DEFAULT_READ_TIMEOUT_S: Final[float] = 30.0

# Transport-level retries mounted on the session (urllib3 Retry)
DEFAULT_REQUEST_RETRIES: Final[int] = 2
DEFAULT_BACKOFF_FACTOR: Final[float] = 0.6
RETRY_STATUSES: Final[tuple] = (429, 502, 503, 504)

# Link header relations (RFC 8288) used for cursors
REL_NEXT: Final[str] = "next"  # older statuses (max_id)
REL_PREV: Final[str] = "prev"  # newer statuses (min_id)
