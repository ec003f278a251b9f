from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape

from timeline_api.config import normalise_host
from timeline_api.timeline import parse_timeline

from .constants import CONFIG_FILE, CONFIG_VERSION, DEFAULT_TIMELINE
from .storage import locked_rewrite, read_text

console = Console()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def sanitize_name(name: str) -> str:
    s = "".join(ch.lower() if ch.isalnum() or ch in ("_", "-", ".") else "_" for ch in (name or "").strip())
    while "__" in s:
        s = s.replace("__", "_")
    return s.strip("_") or "account"


def _valid_timeline(raw: Any) -> str:
    if not isinstance(raw, str) or not raw.strip():
        return DEFAULT_TIMELINE
    try:
        parse_timeline(raw)
    except ValueError:
        console.print(f"[yellow]Unknown timeline {escape(repr(raw))} in {CONFIG_FILE}; using {DEFAULT_TIMELINE}.[/yellow]")
        return DEFAULT_TIMELINE
    return raw


def _empty() -> Dict[str, Any]:
    return {"config_version": CONFIG_VERSION, "accounts": [], "settings": {}}


def _normalise(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        return _empty()

    data.setdefault("config_version", CONFIG_VERSION)
    if not isinstance(data.get("accounts"), list):
        data["accounts"] = []
    if not isinstance(data.get("settings"), dict):
        data["settings"] = {}

    settings = data["settings"]
    settings.setdefault("hide_boosts", False)
    settings.setdefault("hide_replies", False)
    settings.setdefault("show_page_ids", False)

    accounts = []
    for acct in data["accounts"]:
        if not isinstance(acct, dict) or not acct.get("host"):
            continue
        acct["host"] = normalise_host(str(acct["host"]))
        acct.setdefault("name", sanitize_name(acct["host"]))
        acct["timeline"] = _valid_timeline(acct.get("timeline"))
        acct.setdefault("created_at", _now_iso())
        accounts.append(acct)
    data["accounts"] = accounts
    return data


def load_config() -> Dict[str, Any]:
    """
    Config format:
    {
      "config_version": 1,
      "accounts": [{"name":..., "host":..., "timeline": "home", "created_at":...}],
      "settings": {"hide_boosts": false, "hide_replies": false, "show_page_ids": false}
    }

    Access tokens never live here; see secrets.py.
    """
    raw = read_text(CONFIG_FILE)
    if raw is None or not raw.strip():
        return _empty()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        console.print(f"[red]ERROR: Corrupted {CONFIG_FILE}: {e}[/red]")
        return _empty()
    return _normalise(data)


def save_config(cfg: Dict[str, Any]) -> None:
    with locked_rewrite(CONFIG_FILE) as f:
        f.write(json.dumps(_normalise(cfg), indent=2))


def list_accounts(cfg: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [a for a in (cfg.get("accounts") or []) if isinstance(a, dict)]


def get_account(cfg: Dict[str, Any], name: str) -> Optional[Dict[str, Any]]:
    for a in list_accounts(cfg):
        if a.get("name") == name:
            return a
    return None


def add_account(cfg: Dict[str, Any], *, name: str, host: str, timeline: str = DEFAULT_TIMELINE) -> Dict[str, Any]:
    """Add an account entry; raises ValueError on a duplicate name or bad timeline."""
    clean = sanitize_name(name)
    if get_account(cfg, clean):
        raise ValueError(f"Account '{clean}' already exists")
    parse_timeline(timeline)
    acct = {"name": clean, "host": normalise_host(host), "timeline": timeline, "created_at": _now_iso()}
    cfg.setdefault("accounts", []).append(acct)
    return acct


def delete_account(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    cfg["accounts"] = [a for a in list_accounts(cfg) if a.get("name") != name]
    return cfg
