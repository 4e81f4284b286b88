# src/voxel_nav/physics/raycast.py
"""
Look-ray block selection.

Walks the blocks crossed by a segment in the order the segment enters
them and clips the ray against each block's shapes. The first block that
produces a hit wins, which is the block a player would be looking at.
"""

from __future__ import annotations

import math
from typing import Optional

from .aabb import clip_iterable
from .collision import ShapesAtFn
from .types import BlockHitResult, BlockPos, Vec3


def _traverse(start: Vec3, end: Vec3, max_blocks: int):
    """Yield block positions along start→end (3D DDA voxel traversal)."""
    delta = end.minus(start)
    pos = [math.floor(start.x), math.floor(start.y), math.floor(start.z)]
    last = (math.floor(end.x), math.floor(end.y), math.floor(end.z))

    steps = []
    t_max = []
    t_delta = []
    for axis, (origin, d) in enumerate(zip(start, delta)):
        if d > 0.0:
            steps.append(1)
            t_delta.append(1.0 / d)
            t_max.append((pos[axis] + 1 - origin) / d)
        elif d < 0.0:
            steps.append(-1)
            t_delta.append(-1.0 / d)
            t_max.append((pos[axis] - origin) / d)
        else:
            steps.append(0)
            t_delta.append(math.inf)
            t_max.append(math.inf)

    for _ in range(max_blocks):
        yield BlockPos(*pos)
        if tuple(pos) == last:
            return
        axis = min(range(3), key=lambda i: t_max[i])
        if t_max[axis] > 1.0:
            return
        pos[axis] += steps[axis]
        t_max[axis] += t_delta[axis]


def raycast_blocks(
    start: Vec3,
    end: Vec3,
    shapes_at: ShapesAtFn,
    *,
    max_blocks: int = 256,
) -> Optional[BlockHitResult]:
    """
    First block hit by the segment start→end, or None on a miss.

    `shapes_at` returns world-space collision boxes for a block position.
    """
    for pos in _traverse(start, end, max_blocks):
        shapes = shapes_at(pos.x, pos.y, pos.z)
        if not shapes:
            continue
        hit = clip_iterable(shapes, start, end, pos)
        if hit is not None:
            return hit
    return None
