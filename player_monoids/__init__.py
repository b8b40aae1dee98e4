"""Composable, branchable per-entity attributes.

Many callers contribute named values to one attribute of an entity; a `Monoid` folds them
into the value applied to the entity, per named branch, with one branch active at a time.
"""

from player_monoids.core.branch import BranchRef
from player_monoids.core.definition import MonoidDef
from player_monoids.core.errors import InvalidContributionError, MonoidError, UnknownMonoidError
from player_monoids.core.fsm import MAIN_BRANCH
from player_monoids.core.monoid import Monoid, make_monoid
from player_monoids.core.registry import MonoidRegistry

__all__ = [
    "MAIN_BRANCH",
    "BranchRef",
    "InvalidContributionError",
    "Monoid",
    "MonoidDef",
    "MonoidError",
    "MonoidRegistry",
    "UnknownMonoidError",
    "make_monoid",
]
