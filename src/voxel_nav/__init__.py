# voxel_nav package
# src/voxel_nav/__init__.py
"""
voxel_nav package: navigation core of a voxel-world bot client.

Exports:
    - DStarLite: incremental shortest-path planner
    - NavGrid: terrain oracle over a block solidity callback
    - AABB / clip_iterable: geometry engine
    - MovementResolver: per-tick planner + physics integration
    - NavCoreError / NoPathError / OracleContractError: domain errors
"""

from __future__ import annotations

from .errors import NavCoreError, NoPathError, OracleContractError
from .nav import DStarLite, Edge, EdgeTo, NavGrid
from .physics import AABB, Direction, Vec3, clip_iterable
from .resolver import MovementResolver, TickResult

__all__ = [
    "AABB",
    "DStarLite",
    "Direction",
    "Edge",
    "EdgeTo",
    "MovementResolver",
    "NavCoreError",
    "NavGrid",
    "NoPathError",
    "OracleContractError",
    "TickResult",
    "Vec3",
    "clip_iterable",
]
