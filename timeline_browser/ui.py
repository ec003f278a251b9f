from __future__ import annotations

import html
import re
from typing import Any, Callable, Dict, List, Optional

from rich.panel import Panel
from rich.table import Table

from pagedcontent.events import RuntimeEvent
from pagedcontent.page import Page
from timeline_api.errors import ApiError, AuthError, NetworkError, RateLimitError

_TAG_RE = re.compile(r"<[^>]+>")
_BREAK_RE = re.compile(r"<\s*(br|/p)\s*/?>", re.IGNORECASE)


def is_htmlish(body_preview: str) -> bool:
    return "<html" in (body_preview or "").lower()


def render_api_error_panel(e: BaseException) -> Panel:
    """Rich panel for a failed fetch; this is the browser's error handler output."""
    if isinstance(e, AuthError):
        return Panel(
            f"[red]Auth Error {e.status_code}[/red]\n"
            "Check the account's access token and that it has the read:statuses scope.\n\n"
            f"[dim]{e.body_excerpt[:800]}[/dim]",
            style="red",
        )

    if isinstance(e, RateLimitError):
        hint = f"Retry-After: {e.retry_after_s:.0f}s" if e.retry_after_s else "Back off and retry."
        return Panel(f"[red]Rate Limit (429)[/red]\n{hint}", style="red")

    if isinstance(e, ApiError):
        if is_htmlish(e.body_excerpt):
            return Panel(
                "[red]HTML Response Error[/red]\n"
                "The host answered with a web page instead of JSON. Is it a Mastodon instance?\n"
                f"Status: {e.status_code}",
                style="red",
            )
        return Panel(
            f"[red]API Error {e.status_code}[/red]\n{e}\n\n[dim]{e.body_excerpt[:800]}[/dim]",
            style="red",
        )

    if isinstance(e, NetworkError):
        return Panel(f"[red]Network Error[/red]\n{e}\nCheck the host name and your connection.", style="red")

    return Panel(f"[red]Error[/red]\n{type(e).__name__}: {e}", style="red")


def truncate(s: Any, n: int = 96) -> str:
    s2 = str(s)
    return s2 if len(s2) <= n else (s2[: n - 1] + "…")


def strip_html(content: str) -> str:
    text = _BREAK_RE.sub("\n", content or "")
    text = _TAG_RE.sub("", text)
    return html.unescape(text).strip()


# -----------------------------
# Statuses
# -----------------------------
def is_boost(status: Dict[str, Any]) -> bool:
    return bool(status.get("reblog"))


def is_reply(status: Dict[str, Any]) -> bool:
    return status.get("in_reply_to_id") is not None


def status_filter(*, hide_boosts: bool = False, hide_replies: bool = False) -> Optional[Callable[[Dict[str, Any]], bool]]:
    if not hide_boosts and not hide_replies:
        return None

    def _keep(status: Dict[str, Any]) -> bool:
        if hide_boosts and is_boost(status):
            return False
        if hide_replies and is_reply(status):
            return False
        return True

    return _keep


def status_columns(status: Dict[str, Any]) -> List[str]:
    shown = status.get("reblog") if is_boost(status) else status
    account = (shown or {}).get("account") or {}
    author = f"@{account.get('acct', '?')}"
    if is_boost(status):
        booster = (status.get("account") or {}).get("acct", "?")
        author = f"{author} [dim](boosted by @{booster})[/dim]"
    created = str((shown or {}).get("created_at") or "")[:16].replace("T", " ")
    text = strip_html((shown or {}).get("content") or "")
    if not text and (shown or {}).get("media_attachments"):
        text = f"[{len(shown['media_attachments'])} attachment(s)]"
    return [author, created, truncate(text.replace("\n", " "), 160)]


def render_page_table(
    page: Page,
    *,
    index: int,
    predicate: Optional[Callable[[Dict[str, Any]], bool]] = None,
    show_page_ids: bool = False,
) -> Table:
    rows = [s for s in page.elements if predicate is None or predicate(s)]
    title = f"Page {index + 1}"
    if show_page_ids:
        title = f"{title}  [dim]{page!r}[/dim]"
    table = Table(title=title, title_justify="left", show_lines=False, expand=True)
    table.add_column("Author", style="cyan", no_wrap=True, max_width=36)
    table.add_column("When", style="dim", no_wrap=True)
    table.add_column("Status")
    for status in rows:
        table.add_row(*status_columns(status))
    if not rows:
        table.add_row("[dim]-[/dim]", "", "[dim]nothing to show on this page[/dim]")
    return table


# -----------------------------
# Events
# -----------------------------
def format_event_line(ev: RuntimeEvent, *, include_level: bool = False) -> str:
    stream = ev.stream or "default"
    level = (ev.level or "info").lower().strip()
    f: Dict[str, Any] = ev.fields or {}
    parts: List[str] = []

    if include_level and level != "info":
        parts.append(f"[{level}]")

    parts.append(f"[{stream}] {ev.message}")

    key_order = ["direction", "method", "url", "status", "elapsed_ms", "items_count", "count", "rel", "source", "error_type", "error"]
    for k in key_order:
        if k == "count":
            if isinstance(ev.count, int):
                parts.append(f"count={ev.count}")
            continue
        v = f.get(k)
        if v is None:
            continue
        if k == "url":
            parts.append(f"url={truncate(v, 120)}")
        elif k == "error":
            parts.append(f"error={truncate(v, 180)}")
        else:
            parts.append(f"{k}={truncate(v, 60) if isinstance(v, str) else v}")

    return "  ".join(parts)
