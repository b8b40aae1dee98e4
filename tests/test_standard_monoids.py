from __future__ import annotations

import pytest

from player_monoids.core.monoid import make_monoid
from player_monoids.runtime import Runtime
from player_monoids.standard_monoids import nested_apply, product_fold, register_standard_monoids


@pytest.fixture()
def runtime() -> Runtime:
    runtime = Runtime()
    register_standard_monoids(registry=runtime.registry, runtime=runtime)
    return runtime


def test_standard_monoids_are_registered(runtime: Runtime) -> None:
    assert runtime.registry.names() == ["fly", "gravity", "jump", "noclip", "speed"]


def test_speed_multiplier_is_applied_to_entity_physics(runtime: Runtime) -> None:
    player = runtime.join("p1")
    speed = runtime.registry.require("speed")

    change_id = speed.add_change(player, 2)
    speed.add_change(player, 1.5)
    assert player.physics["speed"] == pytest.approx(3.0)

    speed.del_change(player, change_id)
    assert player.physics["speed"] == pytest.approx(1.5)
    assert player.physics["jump"] == 1.0


def test_arena_branch_drives_live_physics_only_while_active(runtime: Runtime) -> None:
    player = runtime.join("p1")
    speed = runtime.registry.require("speed")
    speed.add_change(player, 2, "speed_boost")

    speed.add_change(player, 0.5, "arena_slowdown", "arena")
    assert player.physics["speed"] == 2

    speed.checkout_branch(player, "arena")
    assert player.physics["speed"] == 0.5

    speed.checkout_branch(player, "main")
    assert player.physics["speed"] == 2


def test_privilege_granted_while_any_contribution_asks(runtime: Runtime) -> None:
    player = runtime.join("p1")
    fly = runtime.registry.require("fly")

    fly.add_change(player, True, "wings")
    fly.add_change(player, False, "curse")
    assert "fly" in player.privileges

    fly.del_change(player, "wings")
    assert "fly" not in player.privileges


def test_privilege_rejects_numeric_contribution(runtime: Runtime) -> None:
    player = runtime.join("p1")
    from player_monoids.core.errors import InvalidContributionError

    with pytest.raises(InvalidContributionError):
        runtime.registry.require("noclip").add_change(player, 1)


def test_nested_monoid_feeds_target_as_one_contribution(runtime: Runtime) -> None:
    player = runtime.join("p1")
    speed = runtime.registry.require("speed")
    sprint = make_monoid(
        {"identity": 1.0, "fold": product_fold, "apply": nested_apply(speed, "sprint")},
        name="sprint",
        registry=runtime.registry,
    )
    speed.add_change(player, 2, "boots")

    sprint.add_change(player, 1.5, "stamina")
    sprint.add_change(player, 2, "adrenaline")

    assert speed.value(player) == pytest.approx(6.0)
    assert player.physics["speed"] == pytest.approx(6.0)

    sprint.reset_branch(player)
    assert speed.value(player) == pytest.approx(2.0)


def test_nested_monoid_background_branch_does_not_reach_target(runtime: Runtime) -> None:
    player = runtime.join("p1")
    speed = runtime.registry.require("speed")
    sprint = make_monoid(
        {"identity": 1.0, "fold": product_fold, "apply": nested_apply(speed, "sprint")},
        name="sprint",
    )

    sprint.add_change(player, 3, branch_name="arena")

    assert speed.value(player) == 1.0
    assert player.physics["speed"] == 1.0
