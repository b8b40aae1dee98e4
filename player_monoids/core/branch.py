from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from player_monoids.core.monoid import Monoid


@dataclass(frozen=True, slots=True)
class BranchRef:
    """Capability reference to one branch name of one monoid; the entity is supplied per call.

    Holds no branch data. Every call goes through the engine, so a reference that outlives
    its branch behaves like a reference to an unknown branch:
    - `value` returns the identity, `exists` is False;
    - `del_change` and `reset` do nothing, `delete` returns False;
    - `add_change` and `checkout` create the branch again (firing the creation hook).
    """

    monoid: "Monoid"
    name: str

    def get_name(self) -> str:
        return self.name

    def exists(self, entity: Hashable) -> bool:
        return self.monoid.has_branch(entity, self.name)

    def add_change(self, entity: Hashable, value: Any, id: Hashable | None = None) -> Hashable:
        return self.monoid.add_change(entity, value, id, self.name)

    def del_change(self, entity: Hashable, id: Hashable) -> None:
        self.monoid.del_change(entity, id, self.name)

    def value(self, entity: Hashable) -> Any:
        return self.monoid.value(entity, self.name)

    def reset(self, entity: Hashable) -> None:
        self.monoid.reset_branch(entity, self.name)

    def checkout(self, entity: Hashable) -> "BranchRef":
        return self.monoid.checkout_branch(entity, self.name)

    def delete(self, entity: Hashable) -> bool:
        return self.monoid.delete_branch(entity, self.name)
