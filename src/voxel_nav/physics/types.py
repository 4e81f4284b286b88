# src/voxel_nav/physics/types.py
"""
Small geometry value types shared by the physics modules.

- Vec3: immutable 3D float vector
- BlockPos: integer block coordinate
- Axis / Direction: axis labels and the six axis-aligned directions
- BlockHitResult: outcome of a ray clip against block shapes

Direction normals follow the usual voxel-game layout:
NORTH = -Z, SOUTH = +Z, WEST = -X, EAST = +X, DOWN = -Y, UP = +Y.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple, Optional, Tuple, TypeVar

if TYPE_CHECKING:
    from .aabb import AABB

T = TypeVar("T")


class Vec3(NamedTuple):
    x: float
    y: float
    z: float

    def add(self, x: float, y: float, z: float) -> "Vec3":
        return Vec3(self.x + x, self.y + y, self.z + z)

    def plus(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def minus(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def scale(self, factor: float) -> "Vec3":
        return Vec3(self.x * factor, self.y * factor, self.z * factor)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def distance_to(self, other: "Vec3") -> float:
        return self.minus(other).length()


ZERO = Vec3(0.0, 0.0, 0.0)


class BlockPos(NamedTuple):
    x: int
    y: int
    z: int

    @classmethod
    def containing(cls, x: float, y: float, z: float) -> "BlockPos":
        """Block whose unit cube contains the point (floors negatives correctly)."""
        return cls(math.floor(x), math.floor(y), math.floor(z))

    def offset(self, dx: int, dy: int, dz: int) -> "BlockPos":
        return BlockPos(self.x + dx, self.y + dy, self.z + dz)

    def relative(self, direction: "Direction") -> "BlockPos":
        nx, ny, nz = direction.normal
        return self.offset(nx, ny, nz)


class Axis(Enum):
    X = "x"
    Y = "y"
    Z = "z"

    def choose(self, x: T, y: T, z: T) -> T:
        """Pick the value matching this axis."""
        if self is Axis.X:
            return x
        if self is Axis.Y:
            return y
        return z


class Direction(Enum):
    DOWN = (0, -1, 0)
    UP = (0, 1, 0)
    NORTH = (0, 0, -1)
    SOUTH = (0, 0, 1)
    WEST = (-1, 0, 0)
    EAST = (1, 0, 0)

    @property
    def normal(self) -> Tuple[int, int, int]:
        return self.value

    @property
    def axis(self) -> Axis:
        nx, ny, _ = self.value
        if nx:
            return Axis.X
        if ny:
            return Axis.Y
        return Axis.Z

    @property
    def opposite(self) -> "Direction":
        nx, ny, nz = self.value
        return Direction((-nx, -ny, -nz))

    @classmethod
    def nearest(cls, x: float, y: float, z: float) -> "Direction":
        """Direction whose normal is closest to (x, y, z); NORTH for a zero vector."""
        best = cls.NORTH
        best_dot = 0.0
        for direction in cls:
            nx, ny, nz = direction.value
            dot = nx * x + ny * y + nz * z
            if dot > best_dot:
                best = direction
                best_dot = dot
        return best


@dataclass(frozen=True)
class BlockHitResult:
    """
    Result of clipping a ray against the shapes of one block.

    `direction` is the direction of travel across the struck face; `face`
    is that face's outward normal. `inside` marks a ray that started inside
    one of the shapes, in which case `location` is the ray origin.
    """

    location: Vec3
    direction: Direction
    block_pos: BlockPos
    inside: bool = False
    shape: Optional["AABB"] = None
    t: float = 0.0

    @property
    def face(self) -> Direction:
        return self.direction.opposite
