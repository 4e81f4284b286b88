# src/voxel_nav/physics/__init__.py
"""
Geometry and collision subsystem for voxel_nav.

Provides:
- AABB: immutable axis-aligned box with set algebra and ray clipping
- clip_iterable: closest hit of one ray over the shapes of a block
- BlockCollisionProfile / collide / gather_obstacles: movement collision
- raycast_blocks: look-ray block selection
"""

from __future__ import annotations

from .types import Axis, BlockHitResult, BlockPos, Direction, Vec3
from .aabb import AABB, EPSILON, RayHit, clip_iterable
from .collision import (
    BlockAtFn,
    BlockCollisionProfile,
    CollisionResult,
    ShapesAtFn,
    collide,
    gather_obstacles,
)
from .raycast import raycast_blocks

__all__ = [
    "AABB",
    "Axis",
    "BlockAtFn",
    "BlockCollisionProfile",
    "BlockHitResult",
    "BlockPos",
    "CollisionResult",
    "Direction",
    "EPSILON",
    "RayHit",
    "ShapesAtFn",
    "Vec3",
    "clip_iterable",
    "collide",
    "gather_obstacles",
    "raycast_blocks",
]
