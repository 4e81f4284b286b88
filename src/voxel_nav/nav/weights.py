# src/voxel_nav/nav/weights.py
"""
Edge-weight arithmetic for the planner.

The planner is generic over its weight type. A WeightSpace names the
additive identity and the "infinity" sentinel, and adds with saturation so
that infinity plus anything stays infinity.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Generic, TypeVar

W = TypeVar("W")


@dataclass(frozen=True)
class WeightSpace(Generic[W]):
    zero: W
    infinity: W

    def add(self, a: W, b: W) -> W:
        if a >= self.infinity or b >= self.infinity:  # type: ignore[operator]
            return self.infinity
        total = a + b  # type: ignore[operator]
        if total >= self.infinity:
            return self.infinity
        return total

    def is_infinite(self, value: W) -> bool:
        return value >= self.infinity  # type: ignore[operator]


FLOAT_WEIGHTS: WeightSpace[float] = WeightSpace(zero=0.0, infinity=math.inf)
INT_WEIGHTS: WeightSpace[int] = WeightSpace(zero=0, infinity=sys.maxsize)
