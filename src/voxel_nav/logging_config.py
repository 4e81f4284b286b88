# src/voxel_nav/logging_config.py
"""
Logging setup for entrypoints that embed voxel_nav (demos, bot loops).

    from voxel_nav.logging_config import configure_logging
    configure_logging("DEBUG", trace_level="INFO")

Library modules only create loggers under the `voxel_nav` namespace; this
module is the one place that attaches a handler. Per-tick trace lines go to
`voxel_nav.trace` at DEBUG, so they can be muted separately from planner
and resolver messages.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Union

LOGGER_NAME = "voxel_nav"
TRACE_LOGGER_NAME = "voxel_nav.trace"

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

Level = Union[int, str]


def parse_level(level: Level) -> int:
    """
    Accept logging.DEBUG-style ints or names like "debug" / "WARNING".

    Raises:
        ValueError: unknown level name.
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def configure_logging(level: Level = logging.INFO, *, trace_level: Optional[Level] = None) -> logging.Logger:
    """
    Attach one stdout handler to the `voxel_nav` logger and set its level.

    Does nothing if the root logger or the package logger already has
    handlers (the host application configured logging itself).

    Args:
        level: level for every voxel_nav logger.
        trace_level: optional override for the per-tick trace logger.

    Returns:
        The `voxel_nav` package logger.
    """
    pkg_level = parse_level(level)
    trace = parse_level(trace_level) if trace_level is not None else None

    pkg = logging.getLogger(LOGGER_NAME)
    if logging.getLogger().handlers or pkg.handlers:
        return pkg

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    pkg.addHandler(handler)
    pkg.setLevel(pkg_level)

    if trace is not None:
        logging.getLogger(TRACE_LOGGER_NAME).setLevel(trace)
    return pkg
