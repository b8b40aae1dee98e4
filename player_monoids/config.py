from __future__ import annotations

import os


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", "redis://localhost:6379/0")


def get_log_level() -> str:
    return os.environ.get("PLAYER_MONOIDS_LOG_LEVEL", "INFO").upper()


def change_feed_enabled() -> bool:
    """Publish monoid notifications to Redis Streams (on by default; set PLAYER_MONOIDS_FEED=0 to disable)."""

    return os.environ.get("PLAYER_MONOIDS_FEED", "1").strip().lower() not in {"0", "false", "no", "off"}
