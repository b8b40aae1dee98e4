from __future__ import annotations

from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from typing import Any

import fakeredis
import pytest
from fastapi.testclient import TestClient

from player_monoids.core.monoid import Monoid, make_monoid
from player_monoids.runtime import Entity
from player_monoids.standard_monoids import product_fold


@dataclass
class HookLog:
    """Records every hook call a monoid makes, in order."""

    applied: list[tuple[Any, Any]] = field(default_factory=list)
    changes: list[tuple[Any, Any, Any, str]] = field(default_factory=list)
    created: list[tuple[Any, str]] = field(default_factory=list)
    deleted: list[tuple[Any, str]] = field(default_factory=list)

    def hooks(self) -> dict[str, Callable[..., None]]:
        return {
            "apply": lambda value, entity: self.applied.append((value, entity)),
            "on_change": lambda old, new, entity, branch: self.changes.append((old, new, entity, branch.get_name())),
            "on_branch_created": lambda entity, name: self.created.append((entity, name)),
            "on_branch_deleted": lambda entity, name: self.deleted.append((entity, name)),
        }

    def clear(self) -> None:
        self.applied.clear()
        self.changes.clear()
        self.created.clear()
        self.deleted.clear()


@pytest.fixture()
def hook_log() -> HookLog:
    return HookLog()


@pytest.fixture()
def player() -> Entity:
    return Entity(entity_id="singleplayer")


@pytest.fixture()
def make_speed(hook_log: HookLog) -> Callable[..., Monoid]:
    """Factory for a recorded product monoid (identity 1); overrides replace definition fields."""

    def _make(**overrides: Any) -> Monoid:
        definition = {"identity": 1, "fold": product_fold, **hook_log.hooks(), **overrides}
        return make_monoid(definition, name="speed")

    return _make


@pytest.fixture()
def speed(make_speed: Callable[..., Monoid]) -> Monoid:
    return make_speed()


@pytest.fixture()
def client_and_redis() -> Generator[tuple[TestClient, fakeredis.FakeRedis], None, None]:
    """FastAPI TestClient around a fresh runtime whose change feed writes to fakeredis."""

    from player_monoids.api.deps import get_redis
    from player_monoids.app_runtime import init_runtime, reset_runtime_for_tests
    from player_monoids.main import app

    r = fakeredis.FakeRedis(decode_responses=True)

    reset_runtime_for_tests()
    init_runtime(r=r)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
    reset_runtime_for_tests()
