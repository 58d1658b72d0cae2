from __future__ import annotations

import os


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


REQUEST_TIMEOUT = float(os.getenv("PIXOLID_REQUEST_TIMEOUT", "10"))
CHANGE_POLL_INTERVAL = float(os.getenv("PIXOLID_CHANGE_POLL_INTERVAL", "30"))
SUBSCRIPTIONS_ENABLED = _env_flag("PIXOLID_SUBSCRIPTIONS", "true")
ACCESS_TOKEN = os.getenv("PIXOLID_ACCESS_TOKEN") or None
PLACEHOLDER_IMAGE = os.getenv("PIXOLID_PLACEHOLDER_IMAGE", "/img/icon/empty-profile.svg")
LOG_LEVEL = os.getenv("PIXOLID_LOG_LEVEL", "INFO").upper()
TURTLE = "text/turtle"
