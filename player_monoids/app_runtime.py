from __future__ import annotations

from collections.abc import Callable
from typing import Any

import redis

from player_monoids.config import change_feed_enabled
from player_monoids.infra.redis_client import create_redis
from player_monoids.runtime import Runtime
from player_monoids.standard_monoids import HooksFor, register_standard_monoids
from player_monoids.streams import change_feed_hooks


_RUNTIME: Runtime | None = None


def _feed_hooks_for(r: redis.Redis) -> HooksFor:
    def hooks_for(name: str) -> dict[str, Callable[..., Any]]:
        return change_feed_hooks(r=r, monoid_name=name)

    return hooks_for


def init_runtime(*, r: redis.Redis | None = None) -> Runtime:
    """Build the runtime with the standard monoids once and cache it.

    When `r` is given, every standard monoid publishes its notifications to the change feed.
    Safe to call multiple times; subsequent calls return the already built instance.
    """

    global _RUNTIME
    if _RUNTIME is None:
        runtime = Runtime()
        register_standard_monoids(
            registry=runtime.registry,
            runtime=runtime,
            hooks_for=_feed_hooks_for(r) if r is not None else None,
        )
        _RUNTIME = runtime
    return _RUNTIME


def init_runtime_for_app() -> Runtime:
    return init_runtime(r=create_redis() if change_feed_enabled() else None)


def reset_runtime_for_tests() -> None:
    """Drop the cached runtime so tests can build one around fakeredis."""

    global _RUNTIME
    _RUNTIME = None


def get_runtime() -> Runtime:
    if _RUNTIME is None:
        raise RuntimeError("Runtime not initialized. Call init_runtime() at startup.")
    return _RUNTIME
