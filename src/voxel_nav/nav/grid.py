# src/voxel_nav/nav/grid.py
"""
NavGrid: terrain oracle over a block world.

This module does not know game rules. It only:
- Exposes walkability queries.
- Uses a pluggable is_solid callback to decide collisions.
- Enumerates weighted successor / predecessor edges for the planner.
- Turns block changes into edge-cost updates.

Nodes are (x, y, z) integer coordinates of the block the agent's feet
occupy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..config import PlannerConfig
from ..physics.aabb import AABB
from .dstar_lite import Edge, EdgeTo

# (x, y, z) integer coordinates
Coord = Tuple[int, int, int]

# Signature for a block-solid callback:
#   is_solid(x, y, z) -> bool
BlockSolidFn = Callable[[int, int, int], bool]

# Offsets in the x-z plane
_DIRECTIONS_4 = ((1, 0), (-1, 0), (0, 1), (0, -1))

INFINITY = float("inf")


@dataclass
class NavGrid:
    """
    Navigation grid on top of a block solidity callback.

    Responsibilities:
    - Provide walkability tests (is_walkable).
    - Provide weighted neighbor edges in both directions.
    - Provide an admissible, consistent heuristic for those edges.

    It does NOT:
    - Interpret block types.
    - Own any world data.
    """

    is_solid_block: BlockSolidFn

    max_fall_height: int = 3  # how far the bot is allowed to drop
    max_step_height: int = 1  # how high the bot can step up

    step_up_cost: float = 1.0  # extra cost per block climbed
    fall_cost_per_block: float = 1.0  # extra cost per block dropped

    # Nodes outside these bounds are never generated (half-open).
    bounds: Optional[AABB] = None

    # Per-edge cost overrides; infinity removes the edge.
    edge_overrides: Dict[Tuple[Coord, Coord], float] = field(default_factory=dict)

    @classmethod
    def from_config(cls, is_solid_block: BlockSolidFn, cfg: PlannerConfig, **kwargs) -> "NavGrid":
        """Build a grid from the `planner:` config section."""
        return cls(
            is_solid_block=is_solid_block,
            max_fall_height=cfg.max_fall_height,
            max_step_height=cfg.max_step_height,
            step_up_cost=cfg.step_up_cost,
            fall_cost_per_block=cfg.fall_cost_per_block,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Core queries
    # ------------------------------------------------------------------

    def is_walkable(self, x: int, y: int, z: int) -> bool:
        """
        Determine if the bot can "stand" at (x, y, z).

        - Block at (x, y - 1, z) is solid (floor).
        - Blocks at (x, y, z) and (x, y + 1, z) are non-solid (body + head).
        """
        if self.bounds is not None and not self.bounds.contains(x, y, z):
            return False
        if not self.is_solid_block(x, y - 1, z):
            return False
        if self.is_solid_block(x, y, z):
            return False
        if self.is_solid_block(x, y + 1, z):
            return False
        return True

    def heuristic(self, a: Coord, b: Coord) -> float:
        """
        Weighted Manhattan distance.

        Every move costs at least 1 per horizontal block and at least
        min(step_up_cost, fall_cost_per_block, 1) per vertical block, so
        this never overestimates and satisfies the triangle inequality.
        """
        vertical_weight = min(self.step_up_cost, self.fall_cost_per_block, 1.0)
        return (
            abs(a[0] - b[0])
            + abs(a[2] - b[2])
            + vertical_weight * abs(a[1] - b[1])
        )

    def move_cost(self, a: Coord, b: Coord) -> float:
        dy = b[1] - a[1]
        if dy > 0:
            return 1.0 + self.step_up_cost * dy
        if dy < 0:
            return 1.0 + self.fall_cost_per_block * -dy
        return 1.0

    def successors(self, coord: Coord) -> List[EdgeTo]:
        """
        Edges leaving `coord`: 4-directional walks, step ups and drops.

        Per column, the first matching landing wins: same level, then
        step up, then drops from shallowest to deepest.
        """
        if not self.is_walkable(*coord):
            return []
        edges: List[EdgeTo] = []
        for target in self._raw_successors(coord):
            cost = self._edge_cost(coord, target)
            if cost != INFINITY:
                edges.append(EdgeTo(target, cost))
        return edges

    def predecessors(self, coord: Coord) -> List[EdgeTo]:
        """Edges entering `coord`: exact inverse of successors()."""
        if not self.is_walkable(*coord):
            return []
        x, y, z = coord
        edges: List[EdgeTo] = []
        for dx, dz in _DIRECTIONS_4:
            px, pz = x - dx, z - dz
            for py in range(y - self.max_step_height, y + self.max_fall_height + 1):
                source = (px, py, pz)
                if coord in self._raw_successors(source):
                    cost = self._edge_cost(source, coord)
                    if cost != INFINITY:
                        edges.append(EdgeTo(source, cost))
        return edges

    # ------------------------------------------------------------------
    # Cost changes
    # ------------------------------------------------------------------

    def set_edge_cost(self, a: Coord, b: Coord, cost: Optional[float]) -> Optional[Tuple[Edge, float]]:
        """
        Override the cost of edge a → b (None clears the override).

        Returns the (edge-with-old-cost, new cost) update for the planner,
        or None if the effective cost did not change.
        """
        old = self.edge_cost(a, b)
        if cost is None:
            self.edge_overrides.pop((a, b), None)
        else:
            self.edge_overrides[(a, b)] = cost
        new = self.edge_cost(a, b)
        if old == new:
            return None
        return Edge(a, b, old), new

    def edge_cost(self, a: Coord, b: Coord) -> float:
        """Effective cost of a → b, infinity when the edge does not exist."""
        if not self.is_walkable(*a) or b not in self._raw_successors(a):
            return INFINITY
        return self._edge_cost(a, b)

    def edges_near(self, positions: Iterable[Coord]) -> Dict[Tuple[Coord, Coord], float]:
        """
        Every existing edge that may depend on one of the given block
        positions.

        An edge only reads blocks in the columns of its two endpoints, so
        collecting the edges of every node in the block's own column,
        within step and fall reach, covers all of them.
        """
        nodes = set()
        reach = self.max_step_height + self.max_fall_height + 2
        for bx, by, bz in positions:
            for y in range(by - reach, by + reach + 1):
                nodes.add((bx, y, bz))

        edges: Dict[Tuple[Coord, Coord], float] = {}
        for node in nodes:
            for target, cost in self.successors(node):
                edges[(node, target)] = cost
            for source, cost in self.predecessors(node):
                edges[(source, node)] = cost
        return edges

    @staticmethod
    def diff_edges(
        before: Dict[Tuple[Coord, Coord], float],
        after: Dict[Tuple[Coord, Coord], float],
    ) -> List[Tuple[Edge, float]]:
        """Planner updates turning the `before` edge set into `after`."""
        updates: List[Tuple[Edge, float]] = []
        for key in sorted(set(before) | set(after)):
            old = before.get(key, INFINITY)
            new = after.get(key, INFINITY)
            if old != new:
                updates.append((Edge(key[0], key[1], old), new))
        return updates

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _edge_cost(self, a: Coord, b: Coord) -> float:
        override = self.edge_overrides.get((a, b))
        if override is not None:
            return override
        return self.move_cost(a, b)

    def _raw_successors(self, coord: Coord) -> List[Coord]:
        if not self.is_walkable(*coord):
            return []
        x, y, z = coord
        targets: List[Coord] = []

        for dx, dz in _DIRECTIONS_4:
            nx, nz = x + dx, z + dz

            if self.is_walkable(nx, y, nz):
                targets.append((nx, y, nz))
                continue

            # Climbing needs head room above the origin for every block risen.
            stepped = False
            for dy in range(1, self.max_step_height + 1):
                if self.is_solid_block(x, y + 1 + dy, z):
                    break
                if self.is_walkable(nx, y + dy, nz):
                    targets.append((nx, y + dy, nz))
                    stepped = True
                    break
            if stepped:
                continue

            fall_target = self._find_fall_target(nx, y, nz)
            if fall_target is not None:
                targets.append(fall_target)

        return targets

    def _find_fall_target(self, x: int, start_y: int, z: int) -> Optional[Coord]:
        """
        Find a landing spot when walking off an edge into column (x, z).

        The column must be free from head height down to the landing.
        """
        if self.is_solid_block(x, start_y + 1, z) or self.is_solid_block(x, start_y, z):
            return None
        for y in range(start_y - 1, start_y - self.max_fall_height - 1, -1):
            if self.is_solid_block(x, y, z):
                return None
            if self.is_walkable(x, y, z):
                return (x, y, z)
        return None
