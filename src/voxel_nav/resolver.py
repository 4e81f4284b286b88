# src/voxel_nav/resolver.py
"""
Movement resolver: the per-tick glue between planner and physics.

Each tick:
- ask the planner for the next node when no waypoint is pending
- move the agent's box toward that node's feet position, capped by the
  configured speeds and clamped by block collisions
- when the agent stays stuck for `max_blocked_ticks`, mark the edge as
  impassable, roll the planner back to the node the agent actually
  stands on and re-plan

World changes reported through `world_change()` are turned into edge-cost
updates and absorbed by the planner in one batch.

Design constraints:
- No packets, no world storage; block data comes from callbacks.
- NoPathError becomes a `no_path` tick result; oracle contract
  violations propagate to the caller.
- Single-threaded: every call must come from the same control loop.
"""

from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional

from .config import NavConfig, load_nav_config
from .errors import NoPathError
from .nav.dstar_lite import DStarLite, Edge
from .nav.grid import INFINITY, Coord, NavGrid
from .physics.aabb import AABB
from .physics.collision import ShapesAtFn, collide, gather_obstacles
from .physics.raycast import raycast_blocks
from .physics.types import BlockHitResult, BlockPos, Vec3
from .tracing import NavTracer

log = logging.getLogger(__name__)


MOVING = "moving"
REACHED_WAYPOINT = "reached_waypoint"
ARRIVED = "arrived"
NO_PATH = "no_path"
REPLANNED = "replanned"


@dataclass(frozen=True)
class TickResult:
    status: str
    position: Vec3
    waypoint: Optional[Coord]
    moved: Vec3
    collided: bool


def feet_position(node: Coord) -> Vec3:
    """Where the agent's feet stand when centred on block node."""
    x, y, z = node
    return Vec3(x + 0.5, float(y), z + 0.5)


def node_at(position: Vec3) -> Coord:
    """Grid node containing a feet position."""
    return tuple(BlockPos.containing(position.x, position.y, position.z))  # type: ignore[return-value]


def search_bounds(start: Coord, goal: Coord, margin: int) -> AABB:
    """Half-open box of node coordinates around start and goal."""
    return AABB(
        min(start[0], goal[0]) - margin,
        min(start[1], goal[1]) - margin,
        min(start[2], goal[2]) - margin,
        max(start[0], goal[0]) + margin + 1,
        max(start[1], goal[1]) + margin + 1,
        max(start[2], goal[2]) + margin + 1,
    )


class MovementResolver:
    """
    Drive an agent box from its position to a goal node, one tick at a time.

    If `grid.bounds` is unset, it is set to the search box around start
    and goal (planner.search_margin) so an unreachable goal cannot make
    the planner explore an unbounded world.
    """

    def __init__(
        self,
        grid: NavGrid,
        shapes_at: ShapesAtFn,
        position: Vec3,
        goal: Coord,
        *,
        config: Optional[NavConfig] = None,
        tracer: Optional[NavTracer] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._cfg = config if config is not None else load_nav_config()
        self._log = logger or log
        self._tracer = tracer or NavTracer()

        self.grid = grid
        self.shapes_at = shapes_at
        self.position = position
        self.goal = goal

        self._node: Coord = node_at(position)
        if self.grid.bounds is None:
            self.grid.bounds = search_bounds(self._node, goal, self._cfg.planner.search_margin)

        self.planner: DStarLite = DStarLite(
            self._node,
            goal,
            grid.heuristic,
            grid.successors,
            grid.predecessors,
        )

        self._waypoint: Optional[Coord] = None
        # Cost of node -> waypoint when the planner picked it.
        self._waypoint_cost = INFINITY
        self._blocked_ticks = 0
        self._tick = 0
        self.replans = 0

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def node(self) -> Coord:
        """Last node the agent fully reached."""
        return self._node

    @property
    def waypoint(self) -> Optional[Coord]:
        return self._waypoint

    def bounding_box(self) -> AABB:
        ph = self._cfg.physics
        half = ph.agent_width / 2.0
        x, y, z = self.position
        return AABB(x - half, y, z - half, x + half, y + ph.agent_height, z + half)

    def route(self, max_len: Optional[int] = None) -> List[Coord]:
        """Nodes still ahead: the pending waypoint (if any) and the planned rest."""
        if self._waypoint is None:
            return self.planner.current_path(max_len)[1:]
        return self.planner.current_path(max_len)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> TickResult:
        self._tick += 1

        if self._waypoint is None:
            try:
                nxt = self.planner.try_next()
            except NoPathError as exc:
                self._log.info("No path from %r to %r", exc.details["start"], exc.details["goal"])
                return self._result(NO_PATH, Vec3(0.0, 0.0, 0.0), False)
            if nxt is None:
                return self._result(ARRIVED, Vec3(0.0, 0.0, 0.0), False)
            self._waypoint_cost = self.grid.edge_cost(self._node, nxt)
            self._waypoint = nxt

        target = feet_position(self._waypoint)
        movement = self._desired_movement(target)
        box = self.bounding_box()
        outcome = collide(box, movement, gather_obstacles(box, movement, self.shapes_at))
        self.position = self._snap(self.position.plus(outcome.movement), target)
        collided = outcome.horizontal_collision or outcome.collided_y

        if self.position == target:
            self._node = self._waypoint
            self._waypoint = None
            self._blocked_ticks = 0
            status = ARRIVED if self._node == self.goal else REACHED_WAYPOINT
            return self._result(status, outcome.movement, collided)

        if outcome.movement.length() <= self._cfg.physics.arrival_tolerance:
            self._blocked_ticks += 1
            if self._blocked_ticks >= self._cfg.physics.max_blocked_ticks:
                blocked = self._waypoint
                self._mark_blocked(blocked)
                return self._result(REPLANNED, outcome.movement, collided, detail=f"blocked={blocked}")
        else:
            self._blocked_ticks = 0

        return self._result(MOVING, outcome.movement, collided)

    # ------------------------------------------------------------------
    # World changes
    # ------------------------------------------------------------------

    @contextmanager
    def world_change(self, *positions: Coord) -> Iterator[None]:
        """
        Wrap a caller-side mutation of the blocks at `positions`.

            with resolver.world_change((3, 64, 0)):
                world.set_block(3, 64, 0, "stone")

        Edges around the blocks are captured before and after; the
        difference is queued on the planner and re-planned in one batch.
        If the body raises, whatever it already changed is absorbed before
        the exception propagates.
        """
        before = self.grid.edges_near(positions)
        try:
            yield
        finally:
            after = self.grid.edges_near(positions)
            updates = NavGrid.diff_edges(before, after)
            if updates:
                self.replan(updates)

    def replan(self, updates: List[tuple]) -> int:
        """
        Roll back to the current node and absorb `(edge, new_cost)` updates.

        Returns the number of updates absorbed.
        """
        self._waypoint = None
        self._blocked_ticks = 0
        if self.planner.start != self._node:
            self.planner.set_start(self._node)
        for edge, new_cost in updates:
            self.planner.queue_edge_update(edge, new_cost)
        absorbed = self.planner.update_from_updated_edges()
        self.replans += 1
        self._log.info(
            "Replanned at %r: absorbed=%d cost_to_goal=%s", self._node, absorbed, self.planner.cost_to_goal()
        )
        return absorbed

    # ------------------------------------------------------------------
    # Look ray
    # ------------------------------------------------------------------

    def look_at_block(self, target: Vec3) -> Optional[BlockHitResult]:
        """First block hit looking from the agent's eyes toward `target`, within reach."""
        ph = self._cfg.physics
        eye = self.position.add(0.0, ph.eye_height, 0.0)
        direction = target.minus(eye)
        length = direction.length()
        if length == 0.0:
            return None
        end = eye.plus(direction.scale(ph.reach_distance / length))
        return raycast_blocks(eye, end, self.shapes_at)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _desired_movement(self, target: Vec3) -> Vec3:
        ph = self._cfg.physics
        dx, dy, dz = target.minus(self.position)
        horizontal = math.hypot(dx, dz)
        if horizontal > ph.walk_speed:
            scale = ph.walk_speed / horizontal
            dx *= scale
            dz *= scale
        dy = max(-ph.fall_speed, min(ph.climb_speed, dy))
        return Vec3(dx, dy, dz)

    def _snap(self, position: Vec3, target: Vec3) -> Vec3:
        tol = self._cfg.physics.arrival_tolerance
        return Vec3(
            *(t if abs(p - t) <= tol else p for p, t in zip(position, target))
        )

    def _mark_blocked(self, blocked: Coord) -> None:
        self._log.info("Edge %r -> %r blocked; marking impassable", self._node, blocked)
        update = self.grid.set_edge_cost(self._node, blocked, INFINITY)
        if update is None and self._waypoint_cost != INFINITY:
            # The grid already lost this edge: the world changed without
            # world_change(). Retract the cost the planner routed with.
            self._log.warning(
                "Edge %r -> %r vanished from the grid unreported; retracting cost %s",
                self._node,
                blocked,
                self._waypoint_cost,
            )
            update = (Edge(self._node, blocked, self._waypoint_cost), INFINITY)
        self.replan([update] if update is not None else [])

    def _result(
        self,
        status: str,
        moved: Vec3,
        collided: bool,
        detail: Optional[str] = None,
    ) -> TickResult:
        self._tracer.record(
            tick=self._tick,
            status=status,
            waypoint=self._waypoint,
            position=self.position,
            moved=moved.length(),
            collided=collided,
            detail=detail,
        )
        return TickResult(
            status=status,
            position=self.position,
            waypoint=self._waypoint,
            moved=moved,
            collided=collided,
        )
