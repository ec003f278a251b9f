"""
Shared fixtures for the paging, client and browser tests.
"""
import asyncio
import sys
from pathlib import Path

import pytest

# Repo root on the path so the packages import without an install
sys.path.insert(0, str(Path(__file__).parent.parent))

from pagedcontent.events import emitting
from pagedcontent.page import Page


def status(sid, text="", **extra):
    s = {"id": sid, "content": f"<p>{text or sid}</p>", "account": {"acct": "alice"}}
    s.update(extra)
    return s


def make_page(*ids, previous=None, next=None):
    return Page(elements=tuple(status(i) for i in ids), previous=previous, next=next)


def returning(page):
    """Cursor that resolves immediately with `page`."""
    calls = []

    async def _fetch():
        calls.append(1)
        return page

    _fetch.calls = calls
    return _fetch


def failing(exc):
    async def _fetch():
        raise exc

    return _fetch


class GatedFetch:
    """Cursor that blocks until released, counting how often it was invoked."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = 0
        self._gate = None

    async def __call__(self):
        self.calls += 1
        if self._gate is None:
            self._gate = asyncio.Event()
        await self._gate.wait()
        if self.error is not None:
            raise self.error
        return self.result

    def release(self):
        if self._gate is None:
            self._gate = asyncio.Event()
        self._gate.set()


@pytest.fixture
def captured_events():
    seen = []
    with emitting(seen.append):
        yield seen
