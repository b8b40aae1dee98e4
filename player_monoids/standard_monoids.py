"""Ready-made folds and attribute definitions.

Physics multipliers (speed, jump, gravity) multiply their contributions; privilege toggles
(fly, noclip) are granted when any contribution asks for them.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Hashable, Sequence
from typing import Any

from player_monoids.core.definition import MonoidDef
from player_monoids.core.fsm import MAIN_BRANCH
from player_monoids.core.monoid import Monoid, make_monoid
from player_monoids.core.registry import MonoidRegistry
from player_monoids.runtime import Entity, Runtime

PHYSICS_ATTRIBUTES: tuple[str, ...] = ("speed", "jump", "gravity")
PRIVILEGE_ATTRIBUTES: tuple[str, ...] = ("fly", "noclip")

HooksFor = Callable[[str], dict[str, Callable[..., Any]]]


def product_fold(values: Sequence[float]) -> float:
    return math.prod(values, start=1.0)


def sum_fold(values: Sequence[float]) -> float:
    return math.fsum(values)


def any_fold(values: Sequence[bool]) -> bool:
    return any(values)


def all_fold(values: Sequence[bool]) -> bool:
    return all(values)


def physics_monoid_def(attribute: str, *, runtime: Runtime, **hooks: Callable[..., Any]) -> MonoidDef:
    def apply(value: float, entity: Entity) -> None:
        runtime.set_physics_override(entity, attribute, value)

    return MonoidDef(identity=1.0, fold=product_fold, apply=apply, **hooks)


def privilege_monoid_def(privilege: str, *, runtime: Runtime, **hooks: Callable[..., Any]) -> MonoidDef:
    def apply(value: bool, entity: Entity) -> None:
        runtime.set_privilege(entity, privilege, value)

    return MonoidDef(identity=False, fold=any_fold, apply=apply, **hooks)


def nested_apply(target: Monoid, change_id: Hashable, *, branch_name: str = MAIN_BRANCH) -> Callable[[Any, Hashable], None]:
    """Apply hook that feeds a monoid's value into `target` as a single contribution.

    The outer monoid then acts as one named input of the target. Chains that lead back
    into the same branch recurse without bound; callers must not build them.
    """

    def apply(value: Any, entity: Hashable) -> None:
        target.add_change(entity, value, change_id, branch_name)

    return apply


def register_standard_monoids(
    *,
    registry: MonoidRegistry,
    runtime: Runtime,
    hooks_for: HooksFor | None = None,
) -> dict[str, Monoid]:
    """Build and register every standard monoid. `hooks_for(name)` may add notification hooks."""

    out: dict[str, Monoid] = {}
    for attribute in PHYSICS_ATTRIBUTES:
        hooks = hooks_for(attribute) if hooks_for else {}
        out[attribute] = make_monoid(physics_monoid_def(attribute, runtime=runtime, **hooks), name=attribute, registry=registry)
    for privilege in PRIVILEGE_ATTRIBUTES:
        hooks = hooks_for(privilege) if hooks_for else {}
        out[privilege] = make_monoid(privilege_monoid_def(privilege, runtime=runtime, **hooks), name=privilege, registry=registry)
    return out
