from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Hashable, Mapping
from typing import TYPE_CHECKING, Any

from player_monoids.core.branch import BranchRef
from player_monoids.core.definition import MonoidDef
from player_monoids.core.errors import InvalidContributionError
from player_monoids.core.fsm import MAIN_BRANCH
from player_monoids.core.state import Branch, EntityState

if TYPE_CHECKING:
    from player_monoids.core.registry import MonoidRegistry

logger = logging.getLogger(__name__)

HOOK_NAMES = frozenset({"apply", "on_change", "on_branch_created", "on_branch_deleted"})


class Monoid:
    """One attribute instance: per-entity branch state combined through a `MonoidDef`.

    Every public operation is synchronous. A mutation runs the full sequence
    (update effects -> fold -> refresh branch cache -> apply if active -> notify)
    before returning, so no caller ever observes a stale branch cache.
    """

    def __init__(self, definition: MonoidDef, *, name: str = "monoid") -> None:
        self.definition = definition
        self.name = name
        self._entities: dict[Hashable, EntityState] = {}
        self._next_id = itertools.count(1)

    def __repr__(self) -> str:
        return f"Monoid(name={self.name!r}, entities={len(self._entities)})"

    @property
    def identity(self) -> Any:
        return self.definition.identity

    def set_hooks(self, **hooks: Callable[..., Any] | None) -> None:
        """Swap hooks; the engine always calls whatever is registered at call time."""

        unknown = set(hooks) - HOOK_NAMES
        if unknown:
            raise ValueError(f"Unknown hooks: {', '.join(sorted(unknown))}")
        self.definition = self.definition.with_hooks(**hooks)

    # -- entity lifecycle -------------------------------------------------

    def init_entity(self, entity: Hashable) -> EntityState:
        state = self._entities.get(entity)
        if state is None:
            state = EntityState.fresh(identity=self.definition.identity)
            self._entities[entity] = state
        return state

    def forget_entity(self, entity: Hashable) -> None:
        # Departure is not branch deletion: no hooks.
        self._entities.pop(entity, None)

    def knows(self, entity: Hashable) -> bool:
        return entity in self._entities

    def has_branch(self, entity: Hashable, branch_name: str) -> bool:
        state = self._entities.get(entity)
        return state is not None and branch_name in state.branches

    def _ensure_branch(self, entity: Hashable, state: EntityState, branch_name: str) -> Branch:
        branch = state.branches.get(branch_name)
        if branch is None:
            branch = Branch(name=branch_name, value=self.definition.identity)
            state.branches[branch_name] = branch
            logger.debug("monoid %s: created branch %r for %r", self.name, branch_name, entity)
            self.definition.on_branch_created(entity, branch_name)
        return branch

    # -- recompute / apply / notify ---------------------------------------

    def _apply(self, entity: Hashable, state: EntityState, value: Any) -> None:
        state.last_applied_value = value
        self.definition.apply(value, entity)

    def _notify(self, entity: Hashable, state: EntityState, branch_name: str, old_total: Any, new_total: Any) -> None:
        if self.definition.listen_to_all_changes or state.is_active(branch_name):
            self.definition.on_change(old_total, new_total, entity, self.get_branch(branch_name))

    def _recompute(self, entity: Hashable, state: EntityState, branch: Branch) -> None:
        old_total = branch.value
        new_total = self.definition.fold(list(branch.effects.values()))
        branch.value = new_total

        if state.is_active(branch.name):
            self._apply(entity, state, new_total)

        self._notify(entity, state, branch.name, old_total, new_total)

    # -- contributions ----------------------------------------------------

    def add_change(self, entity: Hashable, value: Any, id: Hashable | None = None, branch_name: str = MAIN_BRANCH) -> Hashable:
        """Insert or overwrite one contribution. Returns the id used."""

        if not self.definition.accepts(value):
            raise InvalidContributionError(
                f"monoid {self.name}: contribution {value!r} does not match identity type {self.definition.value_kind!r}"
            )

        state = self.init_entity(entity)
        branch = self._ensure_branch(entity, state, branch_name)

        change_id = next(self._next_id) if id is None else id
        branch.effects[change_id] = value

        self._recompute(entity, state, branch)
        return change_id

    def del_change(self, entity: Hashable, id: Hashable, branch_name: str = MAIN_BRANCH) -> None:
        state = self._entities.get(entity)
        if state is None:
            return
        branch = state.branches.get(branch_name)
        if branch is None or id not in branch.effects:
            return

        del branch.effects[id]
        self._recompute(entity, state, branch)

    # -- reads ------------------------------------------------------------

    def value(self, entity: Hashable, branch_name: str | None = None) -> Any:
        state = self._entities.get(entity)
        if state is None:
            return self.definition.identity

        branch = state.branches.get(branch_name if branch_name is not None else state.active_branch)
        if branch is None:
            return self.definition.identity
        return branch.value

    def get_branch(self, branch_name: str | None) -> BranchRef | None:
        if not branch_name:
            return None
        return BranchRef(monoid=self, name=branch_name)

    def get_active_branch(self, entity: Hashable) -> BranchRef:
        state = self._entities.get(entity)
        name = state.active_branch if state is not None else MAIN_BRANCH
        return BranchRef(monoid=self, name=name)

    def get_branches(self, entity: Hashable) -> dict[str, BranchRef]:
        state = self._entities.get(entity)
        names = list(state.branches) if state is not None else [MAIN_BRANCH]
        return {name: BranchRef(monoid=self, name=name) for name in names}

    # -- branch lifecycle -------------------------------------------------

    def new_branch(self, entity: Hashable, branch_name: str) -> BranchRef:
        """Create `branch_name` if absent. The active branch does not change."""

        state = self.init_entity(entity)
        self._ensure_branch(entity, state, branch_name)
        return BranchRef(monoid=self, name=branch_name)

    def checkout_branch(self, entity: Hashable, branch_name: str) -> BranchRef:
        """Make `branch_name` active (creating it if needed), notify, then apply even if the value is unchanged."""

        state = self.init_entity(entity)
        old_total = state.last_applied_value
        branch = self._ensure_branch(entity, state, branch_name)

        state.fsm.activate(branch_name)
        new_total = branch.value
        logger.debug("monoid %s: %r checked out branch %r", self.name, entity, branch_name)

        self._notify(entity, state, branch_name, old_total, new_total)
        self._apply(entity, state, new_total)
        return BranchRef(monoid=self, name=branch_name)

    def reset_branch(self, entity: Hashable, branch_name: str = MAIN_BRANCH) -> None:
        state = self._entities.get(entity)
        if state is None:
            return
        branch = state.branches.get(branch_name)
        if branch is None:
            return

        branch.effects = {}
        self._recompute(entity, state, branch)

    def delete_branch(self, entity: Hashable, branch_name: str) -> bool:
        """Delete a non-main branch. Returns False when refused or unknown."""

        if branch_name == MAIN_BRANCH:
            logger.debug("monoid %s: refused to delete the main branch of %r", self.name, entity)
            return False

        state = self._entities.get(entity)
        if state is None or branch_name not in state.branches:
            return False

        if state.is_active(branch_name):
            state.fsm.activate(MAIN_BRANCH)
            self._apply(entity, state, state.branches[MAIN_BRANCH].value)

        del state.branches[branch_name]
        logger.debug("monoid %s: deleted branch %r for %r", self.name, branch_name, entity)
        self.definition.on_branch_deleted(entity, branch_name)
        return True


def make_monoid(
    definition: MonoidDef | Mapping[str, Any],
    *,
    name: str = "monoid",
    registry: "MonoidRegistry | None" = None,
) -> Monoid:
    """Build a monoid from a definition (or a plain mapping of its fields).

    Raises `pydantic.ValidationError` for an invalid definition; no monoid is produced then.
    When `registry` is given the monoid is registered under `name`.
    """

    defn = definition if isinstance(definition, MonoidDef) else MonoidDef.from_mapping(definition)
    monoid = Monoid(defn, name=name)
    if registry is not None:
        registry.register(monoid)
    return monoid
