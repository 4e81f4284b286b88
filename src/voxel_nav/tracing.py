# src/voxel_nav/tracing.py
"""
Tracing for the movement resolver.

Keeps a rolling buffer of per-tick records and emits one structured log
line per tick, so monitoring tools can follow the agent without reaching
into resolver internals.

It does NOT:
- Make movement decisions
- Persist anything
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, List, Optional, Tuple


@dataclass
class StepTraceRecord:
    """Structured record of a single resolver tick."""

    timestamp: float  # wall-clock time (time.time())
    tick: int
    status: str
    waypoint: Optional[Tuple[int, ...]]
    position: Tuple[float, float, float]
    moved: float  # distance actually travelled this tick
    collided: bool
    detail: Optional[str] = None


class NavTracer:
    """
    In-memory tick tracer with logging.

    Responsibilities:
    - Keep a rolling buffer of recent StepTraceRecord entries.
    - Emit a single structured log line per tick (debug for plain
      movement, info for status changes).
    """

    def __init__(
        self,
        *,
        logger: Optional[logging.Logger] = None,
        max_records: int = 10_000,
    ) -> None:
        self._logger = logger or logging.getLogger("voxel_nav.trace")
        self._records: Deque[StepTraceRecord] = deque(maxlen=max_records)

    def record(
        self,
        *,
        tick: int,
        status: str,
        waypoint: Any,
        position: Tuple[float, float, float],
        moved: float,
        collided: bool,
        detail: Optional[str] = None,
    ) -> None:
        """Record one tick. Tracing must never crash the caller."""
        try:
            record = StepTraceRecord(
                timestamp=time.time(),
                tick=int(tick),
                status=str(status),
                waypoint=tuple(waypoint) if waypoint is not None else None,
                position=(float(position[0]), float(position[1]), float(position[2])),
                moved=float(moved),
                collided=bool(collided),
                detail=detail,
            )
        except Exception:
            self._logger.exception("Failed to build StepTraceRecord")
            return

        self._records.append(record)

        level = logging.DEBUG if record.status == "moving" else logging.INFO
        self._logger.log(
            level,
            "nav_tick tick=%d status=%s waypoint=%s pos=(%.3f,%.3f,%.3f) moved=%.4f collided=%s detail=%s",
            record.tick,
            record.status,
            record.waypoint,
            record.position[0],
            record.position[1],
            record.position[2],
            record.moved,
            record.collided,
            record.detail,
        )

    def get_records(self) -> List[StepTraceRecord]:
        """Return a snapshot of all currently buffered records."""
        return list(self._records)
