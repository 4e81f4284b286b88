# src/voxel_nav/config.py
"""
Navigation configuration loader.

Reads config/nav.yaml (or an explicit file) into dataclasses:

    planner:
      step_up_cost: 1.0
      ...
    physics:
      agent_width: 0.6
      ...

Resolution order for load_nav_config():
    1. explicit `path` argument
    2. $VOXEL_NAV_CONFIG
    3. <project>/config/nav.yaml, if present
    4. built-in defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


# ---------------------------------------------------------------------------
# Dataclasses for configuration
# ---------------------------------------------------------------------------


@dataclass
class PlannerConfig:
    step_up_cost: float = 1.0
    fall_cost_per_block: float = 1.0
    max_step_height: int = 1
    max_fall_height: int = 3
    # Blocks of slack around start/goal that bound the search volume.
    search_margin: int = 16


@dataclass
class PhysicsConfig:
    agent_width: float = 0.6
    agent_height: float = 1.8
    eye_height: float = 1.62
    walk_speed: float = 0.2  # blocks per tick, horizontal
    climb_speed: float = 0.2  # blocks per tick, upwards
    fall_speed: float = 0.5  # blocks per tick, downwards
    arrival_tolerance: float = 1.0e-6
    max_blocked_ticks: int = 3
    reach_distance: float = 4.5


@dataclass
class NavConfig:
    """Top-level resolved navigation config."""

    planner: PlannerConfig = field(default_factory=PlannerConfig)
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = PROJECT_ROOT / "config"
DEFAULT_CONFIG_PATH = CONFIG_ROOT / "nav.yaml"

ENV_VAR = "VOXEL_NAV_CONFIG"


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping from `path`."""
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def _build_section(cls: type, raw: Any, section: str) -> Any:
    """Instantiate a config dataclass from a raw mapping, rejecting unknown keys."""
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ValueError(f"Config section '{section}' must be a mapping, got {type(raw)}")

    known = {f.name: f for f in fields(cls)}
    unknown = sorted(set(raw) - set(known))
    if unknown:
        raise ValueError(f"Unknown keys in config section '{section}': {unknown}")

    values: Dict[str, Any] = {}
    for name, value in raw.items():
        values[name] = _coerce(type(getattr(cls(), name)), value, f"{section}.{name}")
    return cls(**values)


def _coerce(kind: type, value: Any, key: str) -> Any:
    """Convert a YAML scalar to the field's type without silently truncating it."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid value for {key}: {value!r} (expected {kind.__name__})")
    if kind is int and isinstance(value, float) and not value.is_integer():
        raise ValueError(f"Invalid value for {key}: {value!r} (expected a whole number)")
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value for {key}: {value!r}") from exc


def _validate(cfg: NavConfig) -> None:
    p = cfg.planner
    if p.step_up_cost < 0 or p.fall_cost_per_block < 0:
        raise ValueError("planner costs must be non-negative")
    if p.max_step_height < 0 or p.max_fall_height < 0 or p.search_margin < 0:
        raise ValueError("planner heights and search_margin must be non-negative")

    ph = cfg.physics
    for name in ("agent_width", "agent_height", "walk_speed", "climb_speed", "fall_speed"):
        if getattr(ph, name) <= 0:
            raise ValueError(f"physics.{name} must be positive")
    if ph.max_blocked_ticks < 1:
        raise ValueError("physics.max_blocked_ticks must be at least 1")


def config_from_mapping(data: Dict[str, Any]) -> NavConfig:
    """Build and validate a NavConfig from an already-parsed mapping."""
    unknown = sorted(set(data) - {"planner", "physics"})
    if unknown:
        raise ValueError(f"Unknown top-level config sections: {unknown}")
    cfg = NavConfig(
        planner=_build_section(PlannerConfig, data.get("planner"), "planner"),
        physics=_build_section(PhysicsConfig, data.get("physics"), "physics"),
    )
    _validate(cfg)
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_nav_config(path: Optional[Union[str, Path]] = None) -> NavConfig:
    """Main entry point: returns a fully resolved NavConfig."""
    if path is None:
        env_path = os.getenv(ENV_VAR)
        if env_path:
            path = env_path
        elif DEFAULT_CONFIG_PATH.exists():
            path = DEFAULT_CONFIG_PATH
        else:
            return NavConfig()

    return config_from_mapping(_load_yaml(Path(path)))
