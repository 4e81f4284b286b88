#!/usr/bin/env python3
"""
tools/nav_demo.py

Terminal demo of the navigation core.

Modes:
    - maze: D* Lite over a 2D maze; walls are toggled while the agent walks,
      and the route is redrawn after each incremental re-plan.
    - walk: MovementResolver on a flat block world with a wall the terrain
      oracle does not know about; prints one row per tick until arrival.

Usage:
    python tools/nav_demo.py --mode maze
    python tools/nav_demo.py --mode walk --log-level DEBUG
"""

from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

# ---------------------------------------------------------------------------
# Ensure src/ is on sys.path when running as a script
# ---------------------------------------------------------------------------

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# ---------------------------------------------------------------------------
# Imports from the project
# ---------------------------------------------------------------------------

from voxel_nav.config import load_nav_config  # type: ignore[import]
from voxel_nav.errors import NoPathError  # type: ignore[import]
from voxel_nav.logging_config import configure_logging  # type: ignore[import]
from voxel_nav.nav import INT_WEIGHTS, DStarLite, NavGrid  # type: ignore[import]
from voxel_nav.physics import BlockCollisionProfile, Vec3  # type: ignore[import]
from voxel_nav.resolver import ARRIVED, NO_PATH, MovementResolver  # type: ignore[import]
from voxel_nav.testing.fakes import BlockWorld, MazeGraph  # type: ignore[import]

DEMO_MAZE = [
    [0, 0, 0, 0, 0, 0, 0, 0],
    [0, 1, 1, 1, 1, 1, 1, 0],
    [0, 0, 0, 0, 0, 0, 1, 0],
    [1, 1, 1, 1, 1, 0, 1, 0],
    [0, 0, 0, 0, 1, 0, 0, 0],
    [0, 1, 1, 0, 1, 1, 1, 0],
    [0, 1, 0, 0, 0, 0, 1, 0],
    [0, 0, 0, 1, 1, 0, 0, 0],
]

Cell = Tuple[int, int]


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_maze(maze: MazeGraph, agent: Cell, goal: Cell, route: Sequence[Cell]) -> Text:
    """Draw the maze with the agent (A), goal (G) and planned route (·)."""
    on_route = set(route)
    txt = Text()
    for y in range(maze.height):
        for x in range(maze.width):
            cell = (x, y)
            if cell == agent:
                txt.append("A ", style="bold cyan")
            elif cell == goal:
                txt.append("G ", style="bold green")
            elif not maze.is_open(cell):
                txt.append("# ", style="dim")
            elif cell in on_route:
                txt.append("· ", style="yellow")
            else:
                txt.append(". ")
        txt.append("\n")
    return txt


def _print_header(console: Console, title: str) -> None:
    console.rule(f"[bold]{title}")


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


def run_maze_demo(console: Console, seed: int = 7, max_steps: int = 200) -> str:
    """
    Walk the demo maze while random walls appear and disappear.

    Returns "arrived" or "no_path".
    """
    rng = random.Random(seed)
    maze = MazeGraph(DEMO_MAZE)
    start, goal = (0, 0), (maze.width - 1, maze.height - 1)
    planner = DStarLite(
        start,
        goal,
        maze.heuristic,
        maze.successors,
        maze.predecessors,
        weights=INT_WEIGHTS,
    )

    _print_header(console, f"Maze demo: {start} -> {goal} (seed={seed})")
    console.print(Panel(render_maze(maze, start, goal, planner.current_path()), title="Initial route"))

    for step in range(1, max_steps + 1):
        try:
            nxt = planner.try_next()
        except NoPathError:
            console.print(Panel(render_maze(maze, planner.start, goal, []), title="No path", border_style="red"))
            return "no_path"
        if nxt is None:
            console.print(f"[bold green]Arrived at {goal} after {step - 1} steps.[/bold green]")
            return "arrived"

        if step % 3 == 0:
            cell = _pick_toggle(rng, maze, protect={planner.start, goal})
            updates = maze.set_wall(cell, maze.is_open(cell), INT_WEIGHTS.infinity)
            for edge, new_cost in updates:
                planner.queue_edge_update(edge, new_cost)
            absorbed = planner.update_from_updated_edges()
            title = f"Step {step}: toggled {cell}, absorbed {absorbed} edge changes"
            console.print(Panel(render_maze(maze, planner.start, goal, planner.current_path()), title=title))

    console.print("[bold red]Step limit reached.[/bold red]")
    return "no_path"


def _pick_toggle(rng: random.Random, maze: MazeGraph, protect: set) -> Cell:
    cells = [
        (x, y)
        for y in range(maze.height)
        for x in range(maze.width)
        if (x, y) not in protect
    ]
    return rng.choice(cells)


def run_walk_demo(console: Console, config_path: Optional[str] = None, max_ticks: int = 500) -> str:
    """
    Drive MovementResolver across a flat world with a hidden wall.

    Returns the final tick status.
    """
    cfg = load_nav_config(config_path)

    known = BlockWorld.flat()
    actual = BlockWorld.flat()
    actual.fill([(3, 64, z) for z in range(-1, 2)] + [(3, 65, z) for z in range(-1, 2)], "minecraft:stone")

    grid = NavGrid.from_config(known.is_solid, cfg.planner)
    profile = BlockCollisionProfile(block_at=actual.block_at)
    resolver = MovementResolver(grid, profile.shapes_at, Vec3(0.5, 64.0, 0.5), (6, 64, 0), config=cfg)

    _print_header(console, "Walk demo: (0, 64, 0) -> (6, 64, 0), hidden wall at x=3")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Tick", justify="right")
    table.add_column("Status", style="bold")
    table.add_column("Waypoint")
    table.add_column("Position")
    table.add_column("Collided", justify="center")

    status = NO_PATH
    for tick in range(1, max_ticks + 1):
        result = resolver.tick()
        status = result.status
        if result.status != "moving" or result.collided:
            x, y, z = result.position
            table.add_row(
                str(tick),
                result.status,
                str(result.waypoint) if result.waypoint is not None else "-",
                f"({x:.2f}, {y:.2f}, {z:.2f})",
                "x" if result.collided else "",
            )
        if status in (ARRIVED, NO_PATH):
            break

    console.print(table)
    console.print(f"Replans: {resolver.replans}, final status: [bold]{status}[/bold]")
    return status


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="voxel_nav terminal demo")
    parser.add_argument("--mode", choices=["maze", "walk"], default="maze")
    parser.add_argument("--seed", type=int, default=7, help="maze mode: wall toggle seed")
    parser.add_argument("--config", default=None, help="walk mode: path to nav.yaml")
    parser.add_argument("--log-level", default="WARNING")
    parser.add_argument("--trace-level", default=None, help="walk mode: level for per-tick trace lines")
    args = parser.parse_args(argv)

    try:
        configure_logging(args.log_level, trace_level=args.trace_level)
    except ValueError as exc:
        parser.error(str(exc))
    console = Console()

    if args.mode == "maze":
        outcome = run_maze_demo(console, seed=args.seed)
    else:
        outcome = run_walk_demo(console, config_path=args.config)
    return 0 if outcome == ARRIVED else 1


if __name__ == "__main__":
    raise SystemExit(main())
