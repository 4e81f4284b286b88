# src/voxel_nav/nav/__init__.py
"""
Navigation subsystem for voxel_nav.

Provides:
- DStarLite: incremental shortest-path planner over a pluggable oracle
- Edge / EdgeTo / Priority / VertexScore: planner data types
- WeightSpace: weight arithmetic (FLOAT_WEIGHTS, INT_WEIGHTS)
- PriorityQueue: addressable open queue
- NavGrid: terrain oracle over a block solidity callback
"""

from __future__ import annotations

from .weights import FLOAT_WEIGHTS, INT_WEIGHTS, WeightSpace
from .priority_queue import PriorityQueue
from .dstar_lite import DStarLite, Edge, EdgeTo, Priority, VertexScore
from .grid import BlockSolidFn, Coord, NavGrid

__all__ = [
    "BlockSolidFn",
    "Coord",
    "DStarLite",
    "Edge",
    "EdgeTo",
    "FLOAT_WEIGHTS",
    "INT_WEIGHTS",
    "NavGrid",
    "Priority",
    "PriorityQueue",
    "VertexScore",
    "WeightSpace",
]
