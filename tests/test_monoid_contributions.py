from __future__ import annotations

from collections.abc import Callable

import pytest

from player_monoids.core.errors import InvalidContributionError
from player_monoids.core.monoid import Monoid
from player_monoids.runtime import Entity
from tests.conftest import HookLog


def test_add_then_remove_change_restores_identity(speed: Monoid, player: Entity) -> None:
    assert speed.value(player) == 1

    change_id = speed.add_change(player, 10)
    assert speed.value(player) == 10

    speed.del_change(player, change_id)
    assert speed.value(player) == 1


def test_same_id_overwrites_previous_contribution(speed: Monoid, player: Entity) -> None:
    speed.add_change(player, 2, "boots")
    speed.add_change(player, 1.5, "boots")

    assert speed.value(player) == 1.5
    assert speed.value(player, "main") == 1.5


def test_contributions_fold_together(speed: Monoid, player: Entity) -> None:
    speed.add_change(player, 2, "boots")
    speed.add_change(player, 3, "potion")
    speed.add_change(player, 0.5, "mud")

    assert speed.value(player) == pytest.approx(3.0)


def test_auto_ids_are_monotonic_across_entities(speed: Monoid) -> None:
    alice = Entity(entity_id="alice")
    bob = Entity(entity_id="bob")

    first = speed.add_change(alice, 2)
    second = speed.add_change(bob, 2)
    third = speed.add_change(alice, 2, branch_name="arena")

    assert first < second < third


def test_explicit_id_is_returned(speed: Monoid, player: Entity) -> None:
    assert speed.add_change(player, 2, "boots") == "boots"


def test_apply_and_notify_on_active_branch(speed: Monoid, player: Entity, hook_log: HookLog) -> None:
    speed.add_change(player, 4, "boots")

    assert hook_log.applied == [(4, player)]
    assert hook_log.changes == [(1, 4, player, "main")]


def test_wrong_type_is_rejected_without_mutation(speed: Monoid, player: Entity, hook_log: HookLog) -> None:
    speed.add_change(player, 2, "boots")
    hook_log.clear()

    with pytest.raises(InvalidContributionError):
        speed.add_change(player, "fast", "boots")
    with pytest.raises(InvalidContributionError):
        speed.add_change(player, True)

    assert speed.value(player) == 2
    assert hook_log.applied == []
    assert hook_log.changes == []


def test_rejected_add_does_not_create_branch_or_consume_id(speed: Monoid, player: Entity, hook_log: HookLog) -> None:
    with pytest.raises(InvalidContributionError):
        speed.add_change(player, "fast", branch_name="arena")

    assert not speed.knows(player)
    assert hook_log.created == []
    assert speed.add_change(player, 2) == 1


def test_del_change_unknown_entity_branch_or_id_is_noop(speed: Monoid, player: Entity, hook_log: HookLog) -> None:
    speed.del_change(player, 1)
    assert not speed.knows(player)

    speed.add_change(player, 2, "boots")
    hook_log.clear()

    speed.del_change(player, "nope")
    speed.del_change(player, "boots", "arena")

    assert speed.value(player) == 2
    assert not speed.has_branch(player, "arena")
    assert hook_log.applied == []
    assert hook_log.changes == []


def test_value_on_unknown_entity_or_branch_is_identity_and_creates_nothing(speed: Monoid, player: Entity) -> None:
    assert speed.value(player) == 1
    assert speed.value(player, "arena") == 1
    assert not speed.knows(player)

    speed.add_change(player, 2)
    assert speed.value(player, "arena") == 1
    assert not speed.has_branch(player, "arena")


def test_cache_matches_fold_after_mixed_sequence(make_speed: Callable[..., Monoid], player: Entity) -> None:
    speed = make_speed()
    effects: dict[str, float] = {}

    ops = [("a", 2.0), ("b", 3.0), ("a", 0.25), ("c", 4.0), ("b", None), ("d", 1.5), ("c", None)]
    for change_id, value in ops:
        if value is None:
            speed.del_change(player, change_id)
            effects.pop(change_id, None)
        else:
            speed.add_change(player, value, change_id)
            effects[change_id] = value

        expected = speed.definition.fold(list(effects.values()))
        assert speed.value(player) == pytest.approx(expected)


def test_swapped_hook_is_used_on_next_call(speed: Monoid, player: Entity, hook_log: HookLog) -> None:
    seen: list[float] = []
    speed.set_hooks(apply=lambda value, entity: seen.append(value))

    speed.add_change(player, 3)

    assert seen == [3]
    assert hook_log.applied == []


def test_set_hooks_rejects_non_hook_fields(speed: Monoid) -> None:
    with pytest.raises(ValueError) as e:
        speed.set_hooks(fold=sum)
    assert "Unknown hooks" in str(e.value)


def test_empty_branch_name_reads_as_unknown_branch(speed: Monoid, player: Entity) -> None:
    speed.add_change(player, 2)

    assert speed.value(player, "") == 1
    assert speed.value(player) == 2
