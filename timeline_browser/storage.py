from __future__ import annotations

import os
from contextlib import contextmanager
from typing import IO, Iterator, Optional

import portalocker


class LockedText:
    """Current contents of a locked file plus a way to replace them."""

    def __init__(self, handle: IO[str]) -> None:
        self._handle = handle
        self.text = handle.read()
        self.written = False

    def write(self, text: str) -> None:
        self._handle.seek(0)
        self._handle.write(text)
        self._handle.truncate()
        self.text = text
        self.written = True


@contextmanager
def locked_rewrite(file_path: str, *, private: bool = False) -> Iterator[LockedText]:
    """
    Read-modify-write a text file under an exclusive portalocker lock.

    The file (and its parent dir) is created empty if missing. `private` chmods
    it to 0600 after a write (tokens live in the secrets file).
    """
    abs_path = os.path.abspath(file_path)
    parent = os.path.dirname(abs_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    if not os.path.exists(abs_path):
        open(abs_path, "w", encoding="utf-8").close()

    with open(abs_path, "r+", encoding="utf-8") as f:
        portalocker.lock(f, portalocker.LOCK_EX)
        try:
            locked = LockedText(f)
            yield locked
            f.flush()
        finally:
            portalocker.unlock(f)

    if private and locked.written and os.name != "nt":
        os.chmod(abs_path, 0o600)


def read_text(file_path: str) -> Optional[str]:
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        return None
