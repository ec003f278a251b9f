from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import quote

from .config import normalise_host
from .constants import TIMELINES_PATH
from .request import URL, Composite, Path, Query

KINDS = ("public", "federated", "local", "hashtag", "home", "list")


@dataclass(frozen=True)
class TimelineType:
    """
    Which timeline to page through.

    public/federated/local share /timelines/public and differ by query flags;
    hashtag and list carry an argument (tag name, list id).
    """
    kind: str
    argument: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind not in KINDS:
            raise ValueError(f"Unknown timeline kind: {self.kind!r}")
        if self.kind in ("hashtag", "list") and not self.argument:
            raise ValueError(f"Timeline kind {self.kind!r} needs an argument")

    @property
    def path(self) -> str:
        if self.kind in ("public", "federated", "local"):
            return f"{TIMELINES_PATH}/public"
        if self.kind == "hashtag":
            return f"{TIMELINES_PATH}/tag/{quote(str(self.argument).lstrip('#'), safe='')}"
        if self.kind == "list":
            return f"{TIMELINES_PATH}/list/{quote(str(self.argument), safe='')}"
        return f"{TIMELINES_PATH}/home"

    @property
    def params(self) -> Dict[str, str]:
        if self.kind == "federated":
            return {"remote": "true"}
        if self.kind == "local":
            return {"local": "true"}
        return {}

    @property
    def title(self) -> str:
        if self.kind == "hashtag":
            return f"#{str(self.argument).lstrip('#')}"
        if self.kind == "list":
            return f"List({self.argument})"
        return self.kind.capitalize()

    @property
    def requires_auth(self) -> bool:
        return self.kind in ("home", "list")

    def __str__(self) -> str:
        return f"{self.kind}:{self.argument}" if self.argument else self.kind


HOME = TimelineType("home")
PUBLIC = TimelineType("public")
LOCAL = TimelineType("local")


def hashtag(tag: str) -> TimelineType:
    return TimelineType("hashtag", tag.lstrip("#"))


def user_list(list_id: str) -> TimelineType:
    return TimelineType("list", list_id)


def parse_timeline(raw: str) -> TimelineType:
    """
    Parse "home", "local", "hashtag:python", "#python" or "list:42".
    """
    s = (raw or "").strip()
    if not s:
        return HOME
    if s.startswith("#"):
        return hashtag(s[1:])
    kind, _, arg = s.partition(":")
    kind = kind.strip().lower()
    if kind == "tag":
        kind = "hashtag"
    return TimelineType(kind, arg.strip() or None)


@dataclass(frozen=True)
class Timeline:
    host: str
    timeline_type: TimelineType = HOME

    def __post_init__(self) -> None:
        object.__setattr__(self, "host", normalise_host(self.host))

    @property
    def url(self) -> str:
        return f"https://{self.host}{self.timeline_type.path}"

    @property
    def title(self) -> str:
        return f"{self.timeline_type.title} @ {self.host}"

    def fragments(self, limit: Optional[int] = None) -> Composite:
        """Request fragments for the first (head) page of this timeline."""
        parts: List = [URL(f"https://{self.host}"), Path(self.timeline_type.path)]
        parts.extend(Query(k, v) for k, v in self.timeline_type.params.items())
        parts.append(Query("limit", limit))
        return Composite(parts)
