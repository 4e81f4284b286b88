# src/voxel_nav/physics/collision.py
"""
Block collision for voxel_nav.

Two concerns live here:

- BlockCollisionProfile: how the world's blocks turn into solidity
  answers (for the terrain oracle) and collision boxes (for physics).
  Which blocks are solid is a game rule supplied by the caller through
  `block_at`; this module only interprets "air-like" values.
- collide(): move an agent box through a set of obstacle boxes, clamping
  the motion one axis at a time (Y first, then X, then Z).

This module does NOT:
    - Decide game-specific block properties beyond shape overrides
    - Reason about hazards (lava, fire, etc.)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .aabb import AABB, EPSILON
from .types import Axis, Vec3

# Signature for a "block lookup" function:
#   block_at(x, y, z) -> Any
BlockAtFn = Callable[[int, int, int], Any]

# Signature for a world-space collision shape lookup:
#   shapes_at(x, y, z) -> sequence of AABB
ShapesAtFn = Callable[[int, int, int], Sequence[AABB]]


def _is_air_like(block: Any) -> bool:
    """
    Decide if a block value is "air-like".

        - None or {} or []  → air
        - numeric 0         → air (old-school ID)
        - mapping with id in {"minecraft:air", "air"} → air
        - string "air" / "minecraft:air" → air

    Anything else is treated as non-air (i.e., potentially solid).
    """
    if block is None:
        return True

    if block == {} or block == []:
        return True

    if isinstance(block, (int, float)) and not isinstance(block, bool) and block == 0:
        return True

    if isinstance(block, str):
        return block.lower() in ("minecraft:air", "air")

    if isinstance(block, dict):
        bid = block.get("id") or block.get("name")
        if isinstance(bid, str) and bid.lower() in ("minecraft:air", "air"):
            return True

    return False


def _block_id(block: Any) -> Optional[str]:
    if isinstance(block, str):
        return block
    if isinstance(block, dict):
        bid = block.get("id") or block.get("name")
        if isinstance(bid, str):
            return bid
    return None


@dataclass
class BlockCollisionProfile:
    """
    Collision policy for navigation and physics.

    Parameters:
        block_at:
            Optional function for retrieving block data at a coordinate.

        default_floor_y:
            Optional Y-level treated as "solid floor everywhere" when
            block_at is not available.

        shape_overrides:
            Block id → list of block-local boxes (inside the unit cube) for
            blocks that are not full cubes, e.g. slabs. An empty list makes
            a block non-colliding while still non-air.
    """

    block_at: Optional[BlockAtFn] = None
    default_floor_y: Optional[int] = None
    shape_overrides: Dict[str, List[AABB]] = field(default_factory=dict)

    def is_solid_block(self, x: int, y: int, z: int) -> bool:
        """
        Decide if the block at (x, y, z) should be treated as solid.

        Behavior:
            - If block_at is provided: any non-air-like value is solid,
              except blocks whose shape override is empty.
            - Else if default_floor_y is set: y <= default_floor_y is solid.
            - Else: everything is non-solid.
        """
        if self.block_at is not None:
            block = self.block_at(x, y, z)
            if _is_air_like(block):
                return False
            bid = _block_id(block)
            if bid is not None and bid in self.shape_overrides:
                return bool(self.shape_overrides[bid])
            return True

        if self.default_floor_y is not None:
            return y <= self.default_floor_y

        return False

    def shapes_at(self, x: int, y: int, z: int) -> List[AABB]:
        """World-space collision boxes of the block at (x, y, z)."""
        if self.block_at is not None:
            block = self.block_at(x, y, z)
            if _is_air_like(block):
                return []
            bid = _block_id(block)
            if bid is not None and bid in self.shape_overrides:
                return [box.move_relative(x, y, z) for box in self.shape_overrides[bid]]
            return [AABB.unit_block(x, y, z)]

        if self.is_solid_block(x, y, z):
            return [AABB.unit_block(x, y, z)]
        return []


# ---------------------------------------------------------------------------
# Movement collision
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CollisionResult:
    """Outcome of moving a box through obstacles for one step."""

    movement: Vec3
    collided_x: bool
    collided_y: bool
    collided_z: bool
    on_ground: bool

    @property
    def horizontal_collision(self) -> bool:
        return self.collided_x or self.collided_z


def gather_obstacles(box: AABB, movement: Vec3, shapes_at: ShapesAtFn) -> List[AABB]:
    """
    Collect every block shape touching the swept volume of `box`.

    The swept box is widened by one block below so fences and other
    tall shapes rooted in the block underneath are not missed.
    """
    swept = box.expand_towards(movement)
    obstacles: List[AABB] = []
    for x in range(math.floor(swept.min_x), math.floor(swept.max_x) + 1):
        for y in range(math.floor(swept.min_y) - 1, math.floor(swept.max_y) + 1):
            for z in range(math.floor(swept.min_z), math.floor(swept.max_z) + 1):
                for shape in shapes_at(x, y, z):
                    if shape.intersects(swept):
                        obstacles.append(shape)
    return obstacles


def _axis_offset(box: AABB, obstacle: AABB, axis: Axis, offset: float) -> float:
    """
    Clamp `offset` along `axis` so `box` stops at `obstacle`.

    Only obstacles overlapping the box on the two other axes by more than
    EPSILON can block; an obstacle already overlapping on `axis` itself
    is ignored.
    """
    if abs(offset) < EPSILON:
        return offset

    for other in Axis:
        if other is axis:
            continue
        if not (
            obstacle.max(other) > box.min(other) + EPSILON
            and obstacle.min(other) < box.max(other) - EPSILON
        ):
            return offset

    if offset > 0.0 and obstacle.min(axis) >= box.max(axis) - EPSILON:
        gap = obstacle.min(axis) - box.max(axis)
        if gap < offset:
            offset = max(gap, 0.0)
    elif offset < 0.0 and obstacle.max(axis) <= box.min(axis) + EPSILON:
        gap = obstacle.max(axis) - box.min(axis)
        if gap > offset:
            offset = min(gap, 0.0)
    return offset


def collide(box: AABB, movement: Vec3, obstacles: Iterable[AABB]) -> CollisionResult:
    """
    Resolve `movement` of `box` against `obstacles`.

    Each axis is clamped against every obstacle and applied before the
    next axis is tested, in the order Y, X, Z.
    """
    obstacles = list(obstacles)
    dx, dy, dz = movement

    allowed_y = dy
    for obstacle in obstacles:
        allowed_y = _axis_offset(box, obstacle, Axis.Y, allowed_y)
    box = box.move_relative(0.0, allowed_y, 0.0)

    allowed_x = dx
    for obstacle in obstacles:
        allowed_x = _axis_offset(box, obstacle, Axis.X, allowed_x)
    box = box.move_relative(allowed_x, 0.0, 0.0)

    allowed_z = dz
    for obstacle in obstacles:
        allowed_z = _axis_offset(box, obstacle, Axis.Z, allowed_z)

    collided_y = allowed_y != dy
    return CollisionResult(
        movement=Vec3(allowed_x, allowed_y, allowed_z),
        collided_x=allowed_x != dx,
        collided_y=collided_y,
        collided_z=allowed_z != dz,
        on_ground=collided_y and dy < 0.0,
    )
