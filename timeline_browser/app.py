#!/usr/bin/env python3
from __future__ import annotations

import sys
from typing import Any, Dict, Optional

import questionary
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.traceback import install

from pagedcontent.events import emitting
from timeline_api.client import MastodonClient
from timeline_api.config import MastodonConfig
from timeline_api.timeline import Timeline, parse_timeline

from .config import add_account, delete_account, get_account, list_accounts, load_config, save_config
from .constants import DEFAULT_TIMELINE
from .secrets import delete_secret, get_secret, update_secret
from .session import EventTap, TimelineSession
from .ui import format_event_line, render_api_error_panel, render_page_table, status_filter

load_dotenv()
install()
console = Console()

TIMELINE_CHOICES = [
    "home - Home",
    "local - Local",
    "federated - Federated",
    "public - Public",
    "hashtag - #tag",
    "list - List",
]


def _pick_account(cfg: Dict[str, Any], prompt: str) -> Optional[Dict[str, Any]]:
    accts = list_accounts(cfg)
    if not accts:
        console.print("[yellow]No accounts yet. Add one first.[/yellow]")
        input("\nPress Enter...")
        return None
    choice = questionary.select(
        prompt,
        choices=[f"{a['name']} ({a['host']})" for a in accts] + ["↩️ Back"],
    ).ask()
    if not choice or "Back" in choice:
        return None
    return get_account(cfg, choice.split(" ")[0])


def _ask_timeline(default: str) -> Optional[str]:
    raw = questionary.select(
        "Which timeline?",
        choices=TIMELINE_CHOICES,
        default=next((c for c in TIMELINE_CHOICES if c.startswith(parse_timeline(default).kind)), None),
    ).ask()
    if not raw:
        return None
    kind = raw.split(" ")[0]
    if kind == "hashtag":
        tag = questionary.text("Hashtag (without #):").ask()
        return f"hashtag:{tag.strip()}" if tag and tag.strip() else None
    if kind == "list":
        list_id = questionary.text("List ID:").ask()
        return f"list:{list_id.strip()}" if list_id and list_id.strip() else None
    return kind


def flow_add_account(cfg: Dict[str, Any]) -> None:
    console.clear()
    console.print(Panel("[bold green]Add Account[/bold green]"))

    host = questionary.text("Instance host (e.g. mastodon.social):").ask()
    if not host or not host.strip():
        return
    name = questionary.text("Unique name:", default=host.strip().split(".")[0]).ask()
    if not name:
        return
    timeline = _ask_timeline(DEFAULT_TIMELINE) or DEFAULT_TIMELINE
    console.print("[dim]Create a token under Preferences → Development with the read scope.[/dim]")
    token = questionary.password("Access token (optional for public timelines):").ask()

    try:
        acct = add_account(cfg, name=name, host=host, timeline=timeline)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        input("\nPress Enter...")
        return

    save_config(cfg)
    if token and token.strip():
        update_secret(acct["name"], {"access_token": token.strip()})
    console.print(f"[green]Saved account '{acct['name']}'.[/green]")
    input("\nPress Enter...")


def flow_delete_account(cfg: Dict[str, Any]) -> None:
    acct = _pick_account(cfg, "Delete which account?")
    if not acct:
        return
    if not questionary.confirm(f"Delete '{acct['name']}' and its token?", default=False).ask():
        return
    delete_account(cfg, acct["name"])
    save_config(cfg)
    delete_secret(acct["name"])
    console.print(f"[green]Deleted '{acct['name']}'.[/green]")
    input("\nPress Enter...")


def flow_filters(cfg: Dict[str, Any]) -> None:
    settings = cfg.setdefault("settings", {})
    picked = questionary.checkbox(
        "Timeline filters:",
        choices=[
            questionary.Choice("Hide boosts", value="hide_boosts", checked=bool(settings.get("hide_boosts"))),
            questionary.Choice("Hide replies", value="hide_replies", checked=bool(settings.get("hide_replies"))),
            questionary.Choice("Show page ids", value="show_page_ids", checked=bool(settings.get("show_page_ids"))),
        ],
    ).ask()
    if picked is None:
        return
    settings["hide_boosts"] = "hide_boosts" in picked
    settings["hide_replies"] = "hide_replies" in picked
    settings["show_page_ids"] = "show_page_ids" in picked
    save_config(cfg)


def _render_timeline(session: TimelineSession, tap: EventTap, settings: Dict[str, Any]) -> None:
    console.clear()
    summary = session.summary()
    console.print(
        Panel(
            f"[bold magenta]{escape(summary['timeline'])}[/bold magenta]  "
            f"[dim]pages={summary['pages']} statuses={summary['statuses']} state={summary['state']}[/dim]"
        )
    )

    predicate = status_filter(
        hide_boosts=bool(settings.get("hide_boosts")),
        hide_replies=bool(settings.get("hide_replies")),
    )
    if session.content.is_empty:
        console.print("[dim]Nothing loaded yet.[/dim]")
    for idx, page in enumerate(session.content):
        console.print(render_page_table(page, index=idx, predicate=predicate, show_page_ids=bool(settings.get("show_page_ids"))))

    for err in session.take_errors():
        console.print(render_api_error_panel(err))

    if tap.recent:
        lines = [escape(format_event_line(ev, include_level=True)) for ev in tap.recent]
        console.print(Panel("\n".join(lines), title="events", style="dim"))


def browse_timeline(session: TimelineSession, settings: Dict[str, Any]) -> None:
    tap = EventTap()
    with emitting(tap):
        with console.status("Loading timeline…"):
            session.refresh()

        while True:
            _render_timeline(session, tap, settings)

            choices = []
            if session.content.is_empty:
                choices.append("🔄 Refresh")
            else:
                if session.coordinator.can_fetch_newer:
                    choices.append("⬆️ Newer")
                if session.coordinator.can_fetch_older:
                    choices.append("⬇️ Older")
                choices.append("🔁 Reload a Status")
            choices.append("↩️ Back")

            action = questionary.select("Action:", choices=choices).ask()
            if not action or "Back" in action:
                return

            if "Refresh" in action:
                with console.status("Refreshing…"):
                    session.refresh()
            elif "Newer" in action:
                with console.status("Fetching newer…"):
                    session.newer()
            elif "Older" in action:
                with console.status("Fetching older…"):
                    session.older()
            elif "Reload a Status" in action:
                status_id = questionary.text("Status ID:").ask()
                if status_id and status_id.strip() in {str(i) for i in session.status_ids()}:
                    session.reload_status(status_id.strip())
                elif status_id:
                    console.print("[yellow]That status is not on screen.[/yellow]")
                    input("\nPress Enter...")


def flow_open_timeline(cfg: Dict[str, Any]) -> None:
    acct = _pick_account(cfg, "Open which account?")
    if not acct:
        return
    raw_timeline = _ask_timeline(acct.get("timeline") or DEFAULT_TIMELINE)
    if not raw_timeline:
        return

    try:
        timeline_type = parse_timeline(raw_timeline)
        mcfg = MastodonConfig.from_env_and_creds(get_secret(acct["name"]), host=acct["host"])
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        input("\nPress Enter...")
        return

    if timeline_type.requires_auth and not mcfg.access_token:
        console.print(f"[yellow]{timeline_type.title} needs an access token for '{acct['name']}'.[/yellow]")
        input("\nPress Enter...")
        return

    with TimelineSession(MastodonClient(mcfg), Timeline(acct["host"], timeline_type)) as session:
        browse_timeline(session, cfg.get("settings") or {})


def main() -> None:
    while True:
        cfg = load_config()
        console.clear()
        console.print(Panel("[bold magenta]Timeline Pager[/bold magenta]"))
        choice = questionary.select(
            "Choose:",
            choices=[
                "📰 Open Timeline",
                "✨ Add Account",
                "🗑️  Delete Account",
                "🧹 Filters",
                "🚪 Exit",
            ],
        ).ask()

        if not choice or "Exit" in choice:
            return
        if "Open Timeline" in choice:
            flow_open_timeline(cfg)
        elif "Add Account" in choice:
            flow_add_account(cfg)
        elif "Delete Account" in choice:
            flow_delete_account(cfg)
        elif "Filters" in choice:
            flow_filters(cfg)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
