#!/usr/bin/env python3
"""
Timeline Pager

The browser UI lives in `timeline_browser/`; paging primitives in `pagedcontent/`
and the Mastodon client in `timeline_api/`. This is just the launcher.
"""
from __future__ import annotations

import sys
from pathlib import Path

# Allow running from a checkout without installing
parent_dir = Path(__file__).parent.parent
sys.path.insert(0, str(parent_dir))

from timeline_browser.app import main


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
