# src/voxel_nav/errors.py
"""
Domain errors for voxel_nav.

- NoPathError: the goal is currently unreachable. Recoverable; the caller
  may pick another goal or wait for terrain changes.
- OracleContractError: the terrain oracle broke its contract (no
  successors at a non-goal node). This is a caller bug and must not be
  retried.

A ray that misses every box is not an error; geometry queries return None.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(eq=False)
class NavCoreError(RuntimeError):
    """Base error for the navigation core."""

    code: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, details={self.details!r})"


class NoPathError(NavCoreError):
    """No path from the planner's start to its goal."""

    def __init__(self, start: Any, goal: Any) -> None:
        super().__init__(code="no_path", details={"start": start, "goal": goal})


class OracleContractError(NavCoreError):
    """The terrain oracle returned no successors for a non-goal node."""

    def __init__(self, node: Any, reason: str = "no_successors") -> None:
        super().__init__(code="oracle_contract", details={"node": node, "reason": reason})
