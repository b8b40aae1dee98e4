from __future__ import annotations

from collections.abc import Generator

import redis

from player_monoids import app_runtime
from player_monoids.infra.redis_client import create_redis
from player_monoids.runtime import Runtime


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        client.close()


def get_runtime() -> Runtime:
    return app_runtime.get_runtime()
