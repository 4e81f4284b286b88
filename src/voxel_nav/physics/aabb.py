# src/voxel_nav/physics/aabb.py
"""
Axis-aligned bounding boxes and exact ray clipping.

AABB is an immutable value: every operation returns a new box. The
`min <= max` ordering per axis is not enforced on construction; callers may
build inverted boxes on purpose, but everything here assumes canonical
ordering unless a method says otherwise.

Ray clipping:
- A ray is the segment from `start` to `end`; hits are reported by the
  parameter t in (0, 1) along it.
- Only entry faces are tested: a ray moving +X can only strike the min-X
  face, and so on.
- EPSILON widens the face rectangle so grazing hits on shared edges are
  not lost to floating-point error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Optional, Tuple

from .types import Axis, BlockHitResult, BlockPos, Direction, Vec3

EPSILON = 1.0e-7


class RayHit(NamedTuple):
    """Closest entry point of a ray into a box."""

    t: float
    location: Vec3
    direction: Direction


@dataclass(frozen=True)
class AABB:
    min_x: float
    min_y: float
    min_z: float
    max_x: float
    max_y: float
    max_z: float

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def of_size(cls, center: Vec3, dx: float, dy: float, dz: float) -> "AABB":
        """Box of extents (dx, dy, dz) centered on `center`."""
        return cls(
            center.x - dx / 2.0,
            center.y - dy / 2.0,
            center.z - dz / 2.0,
            center.x + dx / 2.0,
            center.y + dy / 2.0,
            center.z + dz / 2.0,
        )

    @classmethod
    def unit_block(cls, x: int, y: int, z: int) -> "AABB":
        """The full unit cube occupying block (x, y, z)."""
        return cls(x, y, z, x + 1, y + 1, z + 1)

    # ------------------------------------------------------------------
    # Directional / symmetric resizing
    # ------------------------------------------------------------------

    def contract(self, x: float, y: float, z: float) -> "AABB":
        """Shrink along the sign of each component (negative moves min up)."""
        min_x, min_y, min_z = self.min_x, self.min_y, self.min_z
        max_x, max_y, max_z = self.max_x, self.max_y, self.max_z

        if x < 0.0:
            min_x -= x
        elif x > 0.0:
            max_x -= x

        if y < 0.0:
            min_y -= y
        elif y > 0.0:
            max_y -= y

        if z < 0.0:
            min_z -= z
        elif z > 0.0:
            max_z -= z

        return AABB(min_x, min_y, min_z, max_x, max_y, max_z)

    def expand_towards(self, movement: Vec3) -> "AABB":
        """
        Grow the box in the direction of `movement`.

        The result is the swept volume of the box over that movement, used
        to collect collision candidates before resolving a step.
        """
        min_x, min_y, min_z = self.min_x, self.min_y, self.min_z
        max_x, max_y, max_z = self.max_x, self.max_y, self.max_z

        if movement.x < 0.0:
            min_x += movement.x
        elif movement.x > 0.0:
            max_x += movement.x

        if movement.y < 0.0:
            min_y += movement.y
        elif movement.y > 0.0:
            max_y += movement.y

        if movement.z < 0.0:
            min_z += movement.z
        elif movement.z > 0.0:
            max_z += movement.z

        return AABB(min_x, min_y, min_z, max_x, max_y, max_z)

    def inflate(self, x: float, y: float, z: float) -> "AABB":
        return AABB(
            self.min_x - x,
            self.min_y - y,
            self.min_z - z,
            self.max_x + x,
            self.max_y + y,
            self.max_z + z,
        )

    def deflate(self, x: float, y: float, z: float) -> "AABB":
        return self.inflate(-x, -y, -z)

    def move_relative(self, x: float, y: float, z: float) -> "AABB":
        return AABB(
            self.min_x + x,
            self.min_y + y,
            self.min_z + z,
            self.max_x + x,
            self.max_y + y,
            self.max_z + z,
        )

    # ------------------------------------------------------------------
    # Set algebra
    # ------------------------------------------------------------------

    def intersect(self, other: "AABB") -> "AABB":
        """
        Overlap region of the two boxes.

        Non-overlapping inputs give an inverted box; check `intersects`
        first if the result must be non-empty.
        """
        return AABB(
            max(self.min_x, other.min_x),
            max(self.min_y, other.min_y),
            max(self.min_z, other.min_z),
            min(self.max_x, other.max_x),
            min(self.max_y, other.max_y),
            min(self.max_z, other.max_z),
        )

    def minmax(self, other: "AABB") -> "AABB":
        """Smallest box enclosing both boxes."""
        return AABB(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            min(self.min_z, other.min_z),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
            max(self.max_z, other.max_z),
        )

    def intersects(self, other: "AABB") -> bool:
        """Open-interval overlap on all three axes; touching faces do not count."""
        return (
            self.min_x < other.max_x
            and self.max_x > other.min_x
            and self.min_y < other.max_y
            and self.max_y > other.min_y
            and self.min_z < other.max_z
            and self.max_z > other.min_z
        )

    def intersects_segment(self, a: Vec3, b: Vec3) -> bool:
        """Overlap with the bounding box of the segment a-b."""
        return self.intersects(
            AABB(
                min(a.x, b.x),
                min(a.y, b.y),
                min(a.z, b.z),
                max(a.x, b.x),
                max(a.y, b.y),
                max(a.z, b.z),
            )
        )

    def contains(self, x: float, y: float, z: float) -> bool:
        """Half-open containment: min bounds inclusive, max bounds exclusive."""
        return (
            self.min_x <= x < self.max_x
            and self.min_y <= y < self.max_y
            and self.min_z <= z < self.max_z
        )

    # ------------------------------------------------------------------
    # Measurements
    # ------------------------------------------------------------------

    def get_size(self, axis: Axis) -> float:
        return axis.choose(
            self.max_x - self.min_x,
            self.max_y - self.min_y,
            self.max_z - self.min_z,
        )

    def size(self) -> float:
        """Mean extent over the three axes."""
        return (self.get_size(Axis.X) + self.get_size(Axis.Y) + self.get_size(Axis.Z)) / 3.0

    def min(self, axis: Axis) -> float:
        return axis.choose(self.min_x, self.min_y, self.min_z)

    def max(self, axis: Axis) -> float:
        return axis.choose(self.max_x, self.max_y, self.max_z)

    def get_center(self) -> Vec3:
        return Vec3(
            (self.min_x + self.max_x) / 2.0,
            (self.min_y + self.max_y) / 2.0,
            (self.min_z + self.max_z) / 2.0,
        )

    def has_nan(self) -> bool:
        return any(
            math.isnan(v)
            for v in (self.min_x, self.min_y, self.min_z, self.max_x, self.max_y, self.max_z)
        )

    # ------------------------------------------------------------------
    # Ray clipping
    # ------------------------------------------------------------------

    def clip_ray(self, start: Vec3, end: Vec3) -> Optional[RayHit]:
        """Closest entry of the segment start-end into this box, or None."""
        delta = end.minus(start)
        t, direction = _get_direction(self, start, delta, 1.0, None)
        if direction is None:
            return None
        return RayHit(t, start.add(t * delta.x, t * delta.y, t * delta.z), direction)

    def clip(self, start: Vec3, end: Vec3) -> Optional[Vec3]:
        """Impact point of the segment start-end on this box, or None."""
        hit = self.clip_ray(start, end)
        return hit.location if hit is not None else None


def clip_iterable(
    boxes: Iterable[AABB],
    start: Vec3,
    end: Vec3,
    block_pos: BlockPos,
) -> Optional[BlockHitResult]:
    """
    Clip one ray against several boxes belonging to the same block.

    Returns the closest hit over the whole set, tagged with `block_pos` and
    the struck box, or None when no box is hit. A ray starting inside any
    of the boxes yields an `inside` hit at the ray origin.
    """
    delta = end.minus(start)
    best_t = 1.0
    direction: Optional[Direction] = None
    struck: Optional[AABB] = None

    for box in boxes:
        if box.contains(start.x, start.y, start.z):
            return BlockHitResult(
                location=start,
                direction=Direction.nearest(delta.x, delta.y, delta.z),
                block_pos=block_pos,
                inside=True,
                shape=box,
                t=0.0,
            )
        t, hit_dir = _get_direction(box, start, delta, best_t, None)
        if hit_dir is not None:
            best_t = t
            direction = hit_dir
            struck = box

    if direction is None:
        return None

    return BlockHitResult(
        location=start.add(best_t * delta.x, best_t * delta.y, best_t * delta.z),
        direction=direction,
        block_pos=block_pos,
        shape=struck,
        t=best_t,
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _get_direction(
    box: AABB,
    start: Vec3,
    delta: Vec3,
    best_t: float,
    direction: Optional[Direction],
) -> Tuple[float, Optional[Direction]]:
    """
    Test the entry face on every axis with non-negligible motion.

    Axes are tried X, Y, Z; each may only lower best_t, so the closest
    crossing over all three wins.
    """
    dx, dy, dz = delta

    if dx > EPSILON:
        best_t, direction = _clip_point(
            best_t, direction, dx, dy, dz,
            box.min_x, box.min_y, box.max_y, box.min_z, box.max_z,
            Direction.EAST, start.x, start.y, start.z,
        )
    elif dx < -EPSILON:
        best_t, direction = _clip_point(
            best_t, direction, dx, dy, dz,
            box.max_x, box.min_y, box.max_y, box.min_z, box.max_z,
            Direction.WEST, start.x, start.y, start.z,
        )

    if dy > EPSILON:
        best_t, direction = _clip_point(
            best_t, direction, dy, dz, dx,
            box.min_y, box.min_z, box.max_z, box.min_x, box.max_x,
            Direction.UP, start.y, start.z, start.x,
        )
    elif dy < -EPSILON:
        best_t, direction = _clip_point(
            best_t, direction, dy, dz, dx,
            box.max_y, box.min_z, box.max_z, box.min_x, box.max_x,
            Direction.DOWN, start.y, start.z, start.x,
        )

    if dz > EPSILON:
        best_t, direction = _clip_point(
            best_t, direction, dz, dx, dy,
            box.min_z, box.min_x, box.max_x, box.min_y, box.max_y,
            Direction.SOUTH, start.z, start.x, start.y,
        )
    elif dz < -EPSILON:
        best_t, direction = _clip_point(
            best_t, direction, dz, dx, dy,
            box.max_z, box.min_x, box.max_x, box.min_y, box.max_y,
            Direction.NORTH, start.z, start.x, start.y,
        )

    return best_t, direction


def _clip_point(
    best_t: float,
    direction: Optional[Direction],
    delta_a: float,
    delta_b: float,
    delta_c: float,
    plane: float,
    min_b: float,
    max_b: float,
    min_c: float,
    max_c: float,
    result_dir: Direction,
    start_a: float,
    start_b: float,
    start_c: float,
) -> Tuple[float, Optional[Direction]]:
    """
    Cross the plane `a == plane` and check the (b, c) coordinates there.

    `a` is the axis under test; `b` and `c` are the two other axes, in the
    rotated order used by `_get_direction`.
    """
    t = (plane - start_a) / delta_a
    b = start_b + t * delta_b
    c = start_c + t * delta_c
    if (
        0.0 < t < best_t
        and min_b - EPSILON < b < max_b + EPSILON
        and min_c - EPSILON < c < max_c + EPSILON
    ):
        return t, result_dir
    return best_t, direction
