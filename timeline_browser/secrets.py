from __future__ import annotations

from typing import Any, Dict, Mapping

import tomlkit

from .constants import SECRETS_FILE
from .storage import locked_rewrite, read_text


def _as_plain_dict(value: Any) -> Dict[str, Any]:
    """tomlkit tables act like dicts; normalise to a plain dict, shallowly."""
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    return {}


def update_secret(account: str, secret_data: Dict[str, Any], *, merge: bool = True) -> None:
    """
    Store an account's secrets under [accounts.<name>] in secrets.toml.

    merge=True keeps keys not present in secret_data; merge=False replaces.
    """
    with locked_rewrite(SECRETS_FILE, private=True) as f:
        content = f.text.strip()
        doc = tomlkit.parse(content) if content else tomlkit.document()

        if "accounts" not in doc:
            doc["accounts"] = tomlkit.table()

        incoming = {k: v for k, v in _as_plain_dict(secret_data).items() if v is not None}
        if merge:
            merged = _as_plain_dict(doc["accounts"].get(account))
            merged.update(incoming)
            doc["accounts"][account] = merged
        else:
            doc["accounts"][account] = incoming

        f.write(tomlkit.dumps(doc))


def get_secret(account: str) -> Dict[str, Any]:
    """Secrets for an account; empty when none are stored (public timelines)."""
    raw = read_text(SECRETS_FILE)
    if not raw or not raw.strip():
        return {}
    doc = tomlkit.parse(raw)
    return _as_plain_dict(_as_plain_dict(doc.get("accounts")).get(account))


def delete_secret(account: str) -> None:
    if read_text(SECRETS_FILE) is None:
        return
    with locked_rewrite(SECRETS_FILE, private=True) as f:
        content = f.text.strip()
        if not content:
            return
        doc = tomlkit.parse(content)
        accounts = doc.get("accounts")
        if accounts is not None and account in accounts:
            del accounts[account]
            f.write(tomlkit.dumps(doc))
