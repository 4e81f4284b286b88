# tests/test_resolver.py
"""
Tests for MovementResolver: planner + collision per tick.

The floor is at y=63 (BlockWorld.flat), so the agent's feet are at y=64.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

import pytest

from voxel_nav.config import NavConfig
from voxel_nav.errors import OracleContractError
from voxel_nav.nav import NavGrid
from voxel_nav.physics import BlockCollisionProfile, BlockPos, Direction, Vec3
from voxel_nav.resolver import (
    ARRIVED,
    NO_PATH,
    REACHED_WAYPOINT,
    REPLANNED,
    MovementResolver,
    feet_position,
    node_at,
    search_bounds,
)
from voxel_nav.testing.fakes import BlockWorld
from voxel_nav.tracing import NavTracer

STONE = "minecraft:stone"


def make_resolver(
    world: BlockWorld,
    goal,
    *,
    grid_world: BlockWorld = None,
    start: Vec3 = Vec3(0.5, 64.0, 0.5),
    tracer: NavTracer = None,
) -> MovementResolver:
    grid = NavGrid(is_solid_block=(grid_world or world).is_solid)
    profile = BlockCollisionProfile(block_at=world.block_at)
    return MovementResolver(grid, profile.shapes_at, start, goal, config=NavConfig(), tracer=tracer)


def run(resolver: MovementResolver, limit: int = 500) -> List[Tuple[str, object]]:
    history = []
    for _ in range(limit):
        result = resolver.tick()
        history.append((result.status, result.waypoint))
        if result.status in (ARRIVED, NO_PATH):
            return history
    raise AssertionError(f"resolver did not finish in {limit} ticks")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def test_feet_position_and_node_round_trip() -> None:
    assert feet_position((3, 64, -2)) == Vec3(3.5, 64.0, -1.5)
    assert node_at(Vec3(3.5, 64.0, -1.5)) == (3, 64, -2)
    assert node_at(Vec3(-0.2, 64.3, 0.9)) == (-1, 64, 0)


def test_search_bounds_contains_start_and_goal_with_margin() -> None:
    box = search_bounds((0, 64, 0), (5, 60, -3), 2)

    assert box.contains(0, 64, 0)
    assert box.contains(5, 60, -3)
    assert box.contains(7, 66, 2)
    assert not box.contains(8, 64, 0)


# ---------------------------------------------------------------------------
# Movement
# ---------------------------------------------------------------------------


def test_walks_straight_to_goal() -> None:
    resolver = make_resolver(BlockWorld.flat(), (3, 64, 0))

    assert resolver.route() == [(1, 64, 0), (2, 64, 0), (3, 64, 0)]

    history = run(resolver)

    statuses = [status for status, _ in history]
    assert statuses.count(REACHED_WAYPOINT) == 2
    assert statuses[-1] == ARRIVED
    assert REPLANNED not in statuses
    assert resolver.position == Vec3(3.5, 64.0, 0.5)
    assert resolver.node == (3, 64, 0)
    assert resolver.tick().status == ARRIVED


def test_speed_is_capped_per_tick() -> None:
    resolver = make_resolver(BlockWorld.flat(), (3, 64, 0))

    result = resolver.tick()

    assert result.waypoint == (1, 64, 0)
    assert result.moved.x == pytest.approx(0.2)
    assert resolver.position.x == pytest.approx(0.7)
    assert not result.collided


def test_steps_up_onto_a_block() -> None:
    world = BlockWorld.flat()
    world.set_block(2, 64, 0, STONE)
    resolver = make_resolver(world, (2, 65, 0))

    history = run(resolver)

    assert history[-1][0] == ARRIVED
    assert resolver.position == Vec3(2.5, 65.0, 0.5)


def test_drops_off_a_ledge() -> None:
    world = BlockWorld()
    world.fill([(x, 63, 0) for x in range(-1, 1)], STONE)
    world.fill([(x, 61, 0) for x in range(1, 4)], STONE)
    resolver = make_resolver(world, (3, 62, 0))

    history = run(resolver)

    assert history[-1][0] == ARRIVED
    assert resolver.position == Vec3(3.5, 62.0, 0.5)


def test_unreachable_goal_reports_no_path() -> None:
    world = BlockWorld.flat()
    world.fill(
        [(x, y, z) for x in range(4, 7) for z in range(4, 7) for y in (64, 65) if (x, z) != (5, 5)],
        STONE,
    )
    resolver = make_resolver(world, (5, 64, 5))

    result = resolver.tick()

    assert result.status == NO_PATH
    assert resolver.position == Vec3(0.5, 64.0, 0.5)
    assert resolver.planner.start == (0, 64, 0)


def test_hidden_wall_is_marked_blocked_and_replanned() -> None:
    grid_world = BlockWorld.flat()
    world = BlockWorld.flat()
    world.fill([(2, 64, 0), (2, 65, 0)], STONE)
    resolver = make_resolver(world, (4, 64, 0), grid_world=grid_world)

    history = run(resolver)

    statuses = [status for status, _ in history]
    assert statuses[-1] == ARRIVED
    assert REPLANNED in statuses
    assert resolver.replans >= 1
    assert resolver.grid.edge_overrides[((1, 64, 0), (2, 64, 0))] == float("inf")
    assert resolver.position == Vec3(4.5, 64.0, 0.5)


def test_world_change_replans_around_new_wall() -> None:
    world = BlockWorld.flat()
    resolver = make_resolver(world, (4, 64, 0))
    first = resolver.tick()
    assert first.waypoint == (1, 64, 0)

    with resolver.world_change((2, 64, 0), (2, 65, 0)):
        world.fill([(2, 64, 0), (2, 65, 0)], STONE)

    assert resolver.replans == 1
    assert resolver.waypoint is None
    assert resolver.planner.start == (0, 64, 0)
    assert resolver.planner.cost_to_goal() == 6.0

    history = run(resolver)

    assert history[-1][0] == ARRIVED
    assert all(waypoint != (2, 64, 0) for _, waypoint in history)
    assert resolver.replans == 1
    assert resolver.position == Vec3(4.5, 64.0, 0.5)


def test_world_change_absorbs_partial_mutation_when_body_raises() -> None:
    world = BlockWorld.flat()
    resolver = make_resolver(world, (4, 64, 0))
    resolver.tick()

    with pytest.raises(RuntimeError, match="interrupted"):
        with resolver.world_change((2, 64, 0), (2, 65, 0)):
            world.fill([(2, 64, 0), (2, 65, 0)], STONE)
            raise RuntimeError("placement interrupted")

    assert resolver.replans == 1
    assert resolver.planner.cost_to_goal() == 6.0

    history = run(resolver)

    assert history[-1][0] == ARRIVED
    assert all(waypoint != (2, 64, 0) for _, waypoint in history)
    assert resolver.position == Vec3(4.5, 64.0, 0.5)


def test_unreported_wall_retracts_the_planned_edge(caplog: pytest.LogCaptureFixture) -> None:
    world = BlockWorld.flat()
    resolver = make_resolver(world, (4, 64, 0))
    first = resolver.tick()
    assert first.waypoint == (1, 64, 0)
    assert resolver.planner.rhs((0, 64, 0)) == 4.0

    # Placed behind the resolver's back: the grid sees it, the planner does not.
    world.fill([(1, 64, 0), (1, 65, 0)], STONE)

    with caplog.at_level(logging.WARNING, logger="voxel_nav.resolver"):
        statuses = [resolver.tick().status for _ in range(3)]

    assert statuses[-1] == REPLANNED
    assert any("unreported" in r.getMessage() for r in caplog.records)
    assert resolver.planner.start == (0, 64, 0)
    assert resolver.planner.cost_to_goal() == 6.0

    history = run(resolver)

    assert history[-1][0] == ARRIVED
    assert resolver.position == Vec3(4.5, 64.0, 0.5)


def test_world_change_without_edge_changes_does_not_replan() -> None:
    world = BlockWorld.flat()
    resolver = make_resolver(world, (4, 64, 0))

    with resolver.world_change((10, 70, 10)):
        world.set_block(10, 70, 10, STONE)

    assert resolver.replans == 0


def test_oracle_contract_violation_propagates() -> None:
    class DeadEndGrid(NavGrid):
        def successors(self, coord):
            return []

    world = BlockWorld.flat()
    grid = DeadEndGrid(is_solid_block=world.is_solid)
    profile = BlockCollisionProfile(block_at=world.block_at)
    resolver = MovementResolver(grid, profile.shapes_at, Vec3(0.5, 64.0, 0.5), (2, 64, 0), config=NavConfig())

    with pytest.raises(OracleContractError):
        resolver.tick()


# ---------------------------------------------------------------------------
# Look ray and tracing
# ---------------------------------------------------------------------------


def test_look_at_block_within_reach() -> None:
    world = BlockWorld.flat()
    world.set_block(2, 65, 0, STONE)
    resolver = make_resolver(world, (4, 64, 4))

    hit = resolver.look_at_block(Vec3(2.5, 65.5, 0.5))

    assert hit is not None
    assert hit.block_pos == BlockPos(2, 65, 0)
    assert hit.face is Direction.WEST


def test_look_at_block_out_of_reach_or_degenerate() -> None:
    world = BlockWorld.flat()
    world.set_block(8, 65, 0, STONE)
    resolver = make_resolver(world, (4, 64, 4))

    assert resolver.look_at_block(Vec3(8.5, 65.62, 0.5)) is None
    assert resolver.look_at_block(Vec3(0.5, 65.62, 0.5)) is None


def test_ticks_are_traced() -> None:
    tracer = NavTracer(max_records=100)
    resolver = make_resolver(BlockWorld.flat(), (1, 64, 0), tracer=tracer)

    history = run(resolver)

    records = tracer.get_records()
    assert len(records) == len(history)
    assert [r.tick for r in records] == list(range(1, len(history) + 1))
    assert records[-1].status == ARRIVED
    assert records[-1].position == (1.5, 64.0, 0.5)
