"""
Declarative request composition.

A request is an ordered list of fragments applied left-to-right to one
PartialRequest accumulator:

  req = compose(
      URL("https://mastodon.social"),
      Path("/api/v1/timelines/home"),
      Query("limit", 20),
      Bearer(token),
  )

`None` fragments are skipped so optional parts can be written inline.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import urlsplit, urlunsplit


@dataclass
class PartialRequest:
    method: str = "GET"
    url: Optional[str] = None
    headers: List[Tuple[str, str]] = field(default_factory=list)
    params: List[Tuple[str, str]] = field(default_factory=list)
    body: Optional[bytes] = None

    def header_dict(self) -> Dict[str, str]:
        # Later headers win, matching the order fragments were applied in.
        return {k: v for k, v in self.headers}


class Fragment:
    def apply(self, request: PartialRequest) -> None:  # pragma: no cover
        raise NotImplementedError


def _require_url(request: PartialRequest, what: str) -> str:
    if not request.url:
        raise ValueError(f"{what} applied before a URL fragment")
    return request.url


@dataclass(frozen=True)
class URL(Fragment):
    value: str

    def apply(self, request: PartialRequest) -> None:
        request.url = self.value


@dataclass(frozen=True)
class Method(Fragment):
    value: str

    def apply(self, request: PartialRequest) -> None:
        request.method = self.value.upper()


@dataclass(frozen=True)
class Header(Fragment):
    name: str
    value: str

    def apply(self, request: PartialRequest) -> None:
        request.headers.append((self.name, self.value))


@dataclass(frozen=True)
class Bearer(Fragment):
    token: Optional[str]

    def apply(self, request: PartialRequest) -> None:
        if self.token:
            request.headers.append(("Authorization", f"Bearer {self.token}"))


@dataclass(frozen=True)
class Query(Fragment):
    name: str
    value: Any

    def apply(self, request: PartialRequest) -> None:
        _require_url(request, f"Query({self.name})")
        if self.value is None:
            return
        v = self.value
        if isinstance(v, bool):
            v = "true" if v else "false"
        request.params.append((self.name, str(v)))


@dataclass(frozen=True)
class Path(Fragment):
    value: str

    def apply(self, request: PartialRequest) -> None:
        url = _require_url(request, f"Path({self.value})")
        parts = urlsplit(url)
        path = parts.path.rstrip("/") + "/" + self.value.lstrip("/")
        request.url = urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


@dataclass(frozen=True)
class Body(Fragment):
    data: Union[bytes, Callable[[], bytes]]
    content_type: Optional[str] = None

    def apply(self, request: PartialRequest) -> None:
        if self.content_type:
            request.headers.append(("Content-Type", self.content_type))
        request.body = self.data() if callable(self.data) else self.data


@dataclass(frozen=True)
class Composite(Fragment):
    children: Sequence[Optional[Fragment]] = ()

    def apply(self, request: PartialRequest) -> None:
        for child in self.children:
            if child is not None:
                child.apply(request)


def compose(*fragments: Optional[Fragment], base: Optional[PartialRequest] = None) -> PartialRequest:
    if base is None:
        request = PartialRequest()
    else:
        request = replace(base, headers=list(base.headers), params=list(base.params))
    Composite(fragments).apply(request)
    return request
