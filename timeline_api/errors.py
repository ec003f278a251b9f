from __future__ import annotations

from typing import Optional


class ApiError(RuntimeError):
    """Non-2xx response (or non-JSON body) from the Mastodon API."""

    def __init__(self, status_code: Optional[int], body_excerpt: str, message: Optional[str] = None):
        super().__init__(message or f"HTTP {status_code}: {body_excerpt[:200]}")
        self.status_code = status_code
        self.body_excerpt = body_excerpt


class AuthError(ApiError):
    """Non-retryable auth/scopes error (401/403)."""


class RateLimitError(ApiError):
    def __init__(self, retry_after_s: float, body_excerpt: str = "", message: str = "Rate limited"):
        super().__init__(429, body_excerpt, message)
        self.retry_after_s = float(max(0.0, retry_after_s))


class TransientHttpError(ApiError):
    def __init__(self, status_code: int, body_excerpt: str):
        super().__init__(status_code, body_excerpt, f"Transient HTTP {status_code}")


class NetworkError(RuntimeError):
    """Connection failure or timeout before a response arrived."""
