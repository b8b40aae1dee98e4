from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Any

from player_monoids.core.fsm import MAIN_BRANCH, ActiveBranchFSM


@dataclass(slots=True)
class Branch:
    """One named context of one entity.

    `value` is the memoized fold of `effects`; the engine refreshes it on every mutation.
    """

    name: str
    value: Any
    effects: dict[Hashable, Any] = field(default_factory=dict)


@dataclass(slots=True)
class EntityState:
    """Per (monoid, entity) record: branches, the active-branch FSM and the last applied value."""

    branches: dict[str, Branch]
    last_applied_value: Any
    fsm: ActiveBranchFSM = field(default_factory=ActiveBranchFSM)

    @staticmethod
    def fresh(*, identity: Any) -> "EntityState":
        return EntityState(
            branches={MAIN_BRANCH: Branch(name=MAIN_BRANCH, value=identity)},
            last_applied_value=identity,
        )

    @property
    def active_branch(self) -> str:
        return self.fsm.active_branch

    def is_active(self, branch_name: str) -> bool:
        return self.fsm.active_branch == branch_name
