from __future__ import annotations

import os

CONFIG_FILE = "config.json"
SECRETS_FILE = os.path.join(".timeline", "secrets.toml")
CONFIG_VERSION = 1

DEFAULT_TIMELINE = "home"

# Optional JSONL tee of runtime events (paging + http)
EVENT_LOG_ENV = "TIMELINE_EVENT_LOG"

# How many recent event lines the timeline view keeps for its footer
EVENT_TAIL = 6
