from __future__ import annotations

import logging
from collections.abc import Hashable
from dataclasses import dataclass, field

from player_monoids.core.registry import MonoidRegistry

logger = logging.getLogger(__name__)


def _default_physics() -> dict[str, float]:
    return {"speed": 1.0, "jump": 1.0, "gravity": 1.0}


@dataclass(eq=False, slots=True)
class Entity:
    """A live entity. Hashed by identity, so it can key monoid state directly."""

    entity_id: str
    physics: dict[str, float] = field(default_factory=_default_physics)
    privileges: set[str] = field(default_factory=set)


def entity_key(entity: Hashable) -> str:
    """Stable string id for logs and change feeds."""

    entity_id = getattr(entity, "entity_id", None)
    return str(entity_id) if entity_id is not None else str(entity)


class Runtime:
    """In-process runtime binding layer.

    Owns the live entities and the monoid registry; `join` / `leave` signal the registry's
    lifecycle bridge. The physics/privilege setters are what standard monoids apply through.
    """

    def __init__(self, *, registry: MonoidRegistry | None = None) -> None:
        self.registry = registry if registry is not None else MonoidRegistry()
        self._entities: dict[str, Entity] = {}

    def entities(self) -> list[Entity]:
        return list(self._entities.values())

    def get(self, entity_id: str) -> Entity | None:
        return self._entities.get(entity_id)

    def require(self, entity_id: str) -> Entity:
        entity = self._entities.get(entity_id)
        if entity is None:
            raise LookupError("Entity not found")
        return entity

    def join(self, entity_id: str) -> Entity:
        if entity_id in self._entities:
            raise ValueError("Entity already joined")
        entity = Entity(entity_id=entity_id)
        self._entities[entity_id] = entity
        self.registry.on_join(entity)
        logger.info("entity joined: %s", entity_id)
        return entity

    def leave(self, entity_id: str) -> Entity:
        entity = self.require(entity_id)
        del self._entities[entity_id]
        self.registry.on_leave(entity)
        logger.info("entity left: %s", entity_id)
        return entity

    def set_physics_override(self, entity: Entity, key: str, value: float) -> None:
        entity.physics[key] = value

    def set_privilege(self, entity: Entity, name: str, granted: bool) -> None:
        if granted:
            entity.privileges.add(name)
        else:
            entity.privileges.discard(name)
