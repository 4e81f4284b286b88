# tests/test_nav_grid.py
"""
Unit tests for NavGrid, the terrain oracle behind the planner.

We build synthetic worlds with BlockWorld, so no real chunk data is
required. The floor is at y=63; the agent stands at y=64.
"""

from __future__ import annotations

import math
import random

import pytest

from voxel_nav.errors import NoPathError
from voxel_nav.nav import DStarLite, Edge, EdgeTo, NavGrid
from voxel_nav.physics import AABB
from voxel_nav.testing.fakes import BlockWorld

STONE = "minecraft:stone"


def flat_grid(**kwargs) -> tuple:
    world = BlockWorld.flat()
    return world, NavGrid(is_solid_block=world.is_solid, **kwargs)


def targets(edges) -> set:
    return {target for target, _ in edges}


# ---------------------------------------------------------------------------
# Walkability and edges
# ---------------------------------------------------------------------------


def test_walkable_requires_floor_and_two_free_blocks() -> None:
    world, grid = flat_grid()
    world.set_block(2, 65, 2, STONE)

    assert grid.is_walkable(0, 64, 0)
    assert not grid.is_walkable(0, 63, 0)
    assert not grid.is_walkable(0, 65, 0)
    assert not grid.is_walkable(2, 64, 2)


def test_flat_ground_has_four_unit_edges() -> None:
    _, grid = flat_grid()

    edges = grid.successors((0, 64, 0))

    assert edges == [
        EdgeTo((1, 64, 0), 1.0),
        EdgeTo((-1, 64, 0), 1.0),
        EdgeTo((0, 64, 1), 1.0),
        EdgeTo((0, 64, -1), 1.0),
    ]


def test_unwalkable_node_has_no_edges() -> None:
    _, grid = flat_grid()

    assert grid.successors((0, 70, 0)) == []
    assert grid.predecessors((0, 70, 0)) == []


def test_two_high_wall_blocks_the_column() -> None:
    world, grid = flat_grid()
    world.fill([(1, 64, 0), (1, 65, 0)], STONE)

    assert targets(grid.successors((0, 64, 0))) == {(-1, 64, 0), (0, 64, 1), (0, 64, -1)}


def test_step_up_costs_extra() -> None:
    world, grid = flat_grid(step_up_cost=0.5)
    world.set_block(1, 64, 0, STONE)

    assert EdgeTo((1, 65, 0), 1.5) in grid.successors((0, 64, 0))
    assert grid.move_cost((0, 64, 0), (1, 65, 0)) == 1.5


def test_step_up_needs_head_room_above_origin() -> None:
    world, grid = flat_grid()
    world.set_block(1, 64, 0, STONE)
    world.set_block(0, 66, 0, STONE)

    assert grid.is_walkable(0, 64, 0)
    assert (1, 65, 0) not in targets(grid.successors((0, 64, 0)))


def test_drop_within_max_fall_height() -> None:
    world = BlockWorld()
    world.fill([(0, 63, 0), (1, 60, 0)], STONE)
    grid = NavGrid(is_solid_block=world.is_solid, fall_cost_per_block=2.0)

    assert grid.successors((0, 64, 0)) == [EdgeTo((1, 61, 0), 7.0)]

    shallow = NavGrid(is_solid_block=world.is_solid, max_fall_height=2)
    assert shallow.successors((0, 64, 0)) == []


def test_heuristic_is_weighted_manhattan() -> None:
    _, grid = flat_grid(step_up_cost=0.5, fall_cost_per_block=2.0)

    assert grid.heuristic((0, 64, 0), (3, 66, -1)) == 5.0
    assert grid.heuristic((3, 66, -1), (0, 64, 0)) == 5.0
    assert grid.heuristic((1, 64, 1), (1, 64, 1)) == 0.0


def test_predecessors_are_the_exact_inverse_of_successors() -> None:
    world = BlockWorld.flat(x_range=(0, 5), z_range=(0, 5))
    world.fill([(2, 64, 1), (3, 64, 1), (3, 65, 1)], STONE)
    world.set_block(1, 63, 3, None)
    world.set_block(1, 61, 3, STONE)
    grid = NavGrid(is_solid_block=world.is_solid)

    nodes = [(x, y, z) for x in range(-1, 7) for y in range(60, 69) for z in range(-1, 7)]
    forward = set()
    backward = set()
    for node in nodes:
        for target, cost in grid.successors(node):
            forward.add((node, target, cost))
        for source, cost in grid.predecessors(node):
            backward.add((source, node, cost))

    assert forward
    assert forward == backward
    # The pit is one-way: you can drop in but not climb out.
    assert ((0, 64, 3), (1, 62, 3), 3.0) in forward
    assert not any(source == (1, 62, 3) for source, _target, _cost in forward)


def test_bounds_are_half_open() -> None:
    _, grid = flat_grid(bounds=AABB(0, 60, 0, 3, 70, 3))

    assert grid.is_walkable(2, 64, 2)
    assert not grid.is_walkable(3, 64, 0)
    assert not grid.is_walkable(-1, 64, 0)
    assert targets(grid.successors((2, 64, 0))) == {(1, 64, 0), (2, 64, 1)}


# ---------------------------------------------------------------------------
# Cost changes
# ---------------------------------------------------------------------------


def test_set_edge_cost_reports_planner_updates() -> None:
    _, grid = flat_grid()
    a, b = (0, 64, 0), (1, 64, 0)

    assert grid.set_edge_cost(a, b, math.inf) == (Edge(a, b, 1.0), math.inf)
    assert b not in targets(grid.successors(a))
    assert a not in targets(grid.predecessors(b))
    assert grid.set_edge_cost(a, b, math.inf) is None

    assert grid.set_edge_cost(a, b, None) == (Edge(a, b, math.inf), 1.0)
    assert grid.edge_cost(a, b) == 1.0


def test_edge_cost_of_missing_edge_is_infinite() -> None:
    _, grid = flat_grid()

    assert grid.edge_cost((0, 64, 0), (2, 64, 0)) == math.inf
    assert grid.edge_cost((0, 70, 0), (1, 70, 0)) == math.inf


def test_block_placement_diff() -> None:
    world, grid = flat_grid()
    placed = (2, 64, 0)

    before = grid.edges_near([placed])
    world.set_block(*placed, STONE)
    after = grid.edges_near([placed])
    updates = {(e.predecessor, e.successor): (e.cost, new) for e, new in NavGrid.diff_edges(before, after)}

    assert updates[((1, 64, 0), (2, 64, 0))] == (1.0, math.inf)
    assert updates[((2, 64, 0), (1, 64, 0))] == (1.0, math.inf)
    assert updates[((1, 64, 0), (2, 65, 0))] == (math.inf, 2.0)
    assert updates[((2, 65, 0), (1, 64, 0))] == (math.inf, 2.0)
    assert ((0, 64, 0), (1, 64, 0)) not in updates


def test_diff_edges_is_sorted_and_skips_unchanged() -> None:
    before = {((1, 0, 0), (2, 0, 0)): 1.0, ((0, 0, 0), (1, 0, 0)): 1.0}
    after = {((1, 0, 0), (2, 0, 0)): 1.0, ((0, 0, 0), (1, 0, 0)): 3.0, ((0, 0, 0), (0, 0, 1)): 1.0}

    updates = NavGrid.diff_edges(before, after)

    assert updates == [
        (Edge((0, 0, 0), (0, 0, 1), math.inf), 1.0),
        (Edge((0, 0, 0), (1, 0, 0), 1.0), 3.0),
    ]


# ---------------------------------------------------------------------------
# Planning over the grid
# ---------------------------------------------------------------------------


def make_planner(grid: NavGrid, start, goal) -> DStarLite:
    return DStarLite(start, goal, grid.heuristic, grid.successors, grid.predecessors)


def test_planner_routes_around_wall() -> None:
    world, grid = flat_grid()
    world.fill([(3, y, z) for y in (64, 65) for z in range(-4, 4)], STONE)
    planner = make_planner(grid, (0, 64, 0), (6, 64, 0))

    assert planner.cost_to_goal() == 14.0
    path = planner.current_path()
    assert path[-1] == (6, 64, 0)
    assert (3, 64, 4) in path


def test_planner_climbs_a_step() -> None:
    world, grid = flat_grid()
    world.fill([(x, 64, z) for x in range(3, 13) for z in range(-4, 13)], STONE)
    planner = make_planner(grid, (0, 64, 0), (5, 65, 0))

    assert planner.cost_to_goal() == 6.0
    steps = []
    while True:
        nxt = planner.try_next()
        if nxt is None:
            break
        steps.append(nxt)
    assert steps == [(1, 64, 0), (2, 64, 0), (3, 65, 0), (4, 65, 0), (5, 65, 0)]


def test_planner_replans_after_block_placed() -> None:
    world, grid = flat_grid()
    planner = make_planner(grid, (0, 64, 0), (4, 64, 0))
    assert planner.try_next() == (1, 64, 0)

    blocks = [(2, 64, z) for z in range(-1, 2)] + [(2, 65, z) for z in range(-1, 2)]
    before = grid.edges_near(blocks)
    world.fill(blocks, STONE)
    for edge, new_cost in NavGrid.diff_edges(before, grid.edges_near(blocks)):
        planner.queue_edge_update(edge, new_cost)
    planner.update_from_updated_edges()

    # 3 straight + 2 out and 2 back around the 3-wide wall.
    assert planner.cost_to_goal() == 7.0
    assert all(node[0] != 2 or abs(node[2]) >= 2 for node in planner.current_path())


def test_enclosed_goal_is_no_path() -> None:
    world, grid = flat_grid()
    ring = [(x, y, z) for x in range(4, 7) for z in range(4, 7) for y in (64, 65) if (x, z) != (5, 5)]
    world.fill(ring, STONE)
    planner = make_planner(grid, (0, 64, 0), (5, 64, 5))

    with pytest.raises(NoPathError):
        planner.try_next()


@pytest.mark.parametrize("seed", range(10))
def test_block_changes_match_fresh_planner(seed: int) -> None:
    rng = random.Random(seed)
    world, grid = flat_grid(bounds=AABB(0, 58, 0, 8, 70, 8))
    start, goal = (0, 64, 0), (7, 64, 7)
    planner = make_planner(grid, start, goal)

    for _ in range(12):
        here = planner.start
        if here == goal:
            break

        fixed = {(here[0], here[2]), (goal[0], goal[2])}
        columns = [(x, z) for x in range(8) for z in range(8) if (x, z) not in fixed]
        blocks = []
        for _ in range(3):
            x, z = rng.choice(columns)
            blocks.append((x, rng.choice((63, 64, 65)), z))

        before = grid.edges_near(blocks)
        for x, y, z in blocks:
            world.set_block(x, y, z, None if world.is_solid(x, y, z) else STONE)
        for edge, new_cost in NavGrid.diff_edges(before, grid.edges_near(blocks)):
            planner.queue_edge_update(edge, new_cost)
        planner.update_from_updated_edges()

        fresh = make_planner(grid, here, goal)
        assert planner.cost_to_goal() == fresh.cost_to_goal()
        if math.isinf(fresh.cost_to_goal()):
            with pytest.raises(NoPathError):
                planner.try_next()
            continue
        planner.try_next()
