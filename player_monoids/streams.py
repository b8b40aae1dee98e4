from __future__ import annotations

import json
import logging
from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, cast

import redis

from player_monoids.core.branch import BranchRef
from player_monoids.runtime import entity_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChangeFeed:
    monoid: str
    entity_id: str

    @property
    def key(self) -> str:
        return f"monoids:{self.monoid}:{self.entity_id}"


def _now_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


def publish_to_feed(*, r: redis.Redis, feed: ChangeFeed, fields: Mapping[str, str]) -> str:
    """Append an entry to an entity's change feed stream."""

    stream_id = r.xadd(feed.key, {str(k): str(v) for k, v in fields.items()})
    return cast(str, stream_id)


def read_feed(
    *,
    r: redis.Redis,
    feed: ChangeFeed,
    count: int = 20,
    start: str = "-",
    end: str = "+",
) -> list[tuple[str, dict[str, str]]]:
    entries = r.xrange(feed.key, min=start, max=end, count=count)
    return [(cast(str, mid), cast(dict[str, str], fields)) for mid, fields in entries]


def change_feed_hooks(*, r: redis.Redis, monoid_name: str) -> dict[str, Callable[..., Any]]:
    """Notification hooks that publish to Redis Streams.

    Values are JSON-encoded so `true`/`1.5` survive the string-only stream fields.
    The feed is an observer: a Redis failure is logged and never interrupts the monoid call.
    """

    def _publish(feed: ChangeFeed, fields: Mapping[str, str]) -> None:
        try:
            publish_to_feed(r=r, feed=feed, fields=fields)
        except redis.RedisError as e:
            logger.warning("change feed publish to %s failed: %s", feed.key, e)

    def on_change(old: Any, new: Any, entity: Hashable, branch: BranchRef) -> None:
        eid = entity_key(entity)
        _publish(
            feed=ChangeFeed(monoid=monoid_name, entity_id=eid),
            fields={
                "type": "value_changed",
                "monoid": monoid_name,
                "entity_id": eid,
                "branch": branch.get_name(),
                "old": json.dumps(old),
                "new": json.dumps(new),
                "ts": _now_iso(),
            },
        )

    def _branch_event(event_type: str) -> Callable[[Hashable, str], None]:
        def hook(entity: Hashable, branch_name: str) -> None:
            eid = entity_key(entity)
            _publish(
                feed=ChangeFeed(monoid=monoid_name, entity_id=eid),
                fields={
                    "type": event_type,
                    "monoid": monoid_name,
                    "entity_id": eid,
                    "branch": branch_name,
                    "ts": _now_iso(),
                },
            )

        return hook

    return {
        "on_change": on_change,
        "on_branch_created": _branch_event("branch_created"),
        "on_branch_deleted": _branch_event("branch_deleted"),
    }
