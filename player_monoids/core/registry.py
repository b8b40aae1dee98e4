from __future__ import annotations

import logging
from collections.abc import Hashable, Iterator

from player_monoids.core.errors import UnknownMonoidError
from player_monoids.core.monoid import Monoid

logger = logging.getLogger(__name__)


class MonoidRegistry:
    """Explicit collection of monoids owned by whoever composes them (usually the runtime).

    Also the lifecycle bridge: `on_join` / `on_leave` fan entity signals out to every
    registered monoid.
    """

    def __init__(self) -> None:
        self._monoids: dict[str, Monoid] = {}

    def __iter__(self) -> Iterator[Monoid]:
        return iter(list(self._monoids.values()))

    def __len__(self) -> int:
        return len(self._monoids)

    def __contains__(self, name: object) -> bool:
        return name in self._monoids

    def names(self) -> list[str]:
        return sorted(self._monoids)

    def register(self, monoid: Monoid) -> Monoid:
        if monoid.name in self._monoids:
            raise ValueError(f"Monoid already registered: {monoid.name}")
        self._monoids[monoid.name] = monoid
        return monoid

    def unregister(self, name: str) -> Monoid | None:
        return self._monoids.pop(name, None)

    def get(self, name: str) -> Monoid | None:
        return self._monoids.get(name)

    def require(self, name: str) -> Monoid:
        monoid = self._monoids.get(name)
        if monoid is None:
            raise UnknownMonoidError(f"Monoid not found: {name}")
        return monoid

    def on_join(self, entity: Hashable) -> None:
        """Initialize state for every monoid so reads never need lazy setup."""

        for monoid in self:
            monoid.init_entity(entity)

    def on_leave(self, entity: Hashable) -> None:
        for monoid in self:
            monoid.forget_entity(entity)
        logger.debug("dropped monoid state for %r across %d monoids", entity, len(self._monoids))
