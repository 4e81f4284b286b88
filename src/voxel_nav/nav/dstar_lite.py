# src/voxel_nav/nav/dstar_lite.py
"""
Incremental shortest-path planning with D* Lite (optimized version).

The search runs backwards from the goal, so every node carries:
    g   - best known cost from the node to the goal
    rhs - one-step look-ahead of g computed from the node's successors

A node is consistent when g == rhs; the open queue holds exactly the
inconsistent nodes. When the agent moves, the key modifier k_m grows by
the heuristic distance travelled, which keeps the keys already in the queue
valid lower bounds without re-keying them.

Caller contract:
- `heuristic(a, b)` must be admissible and consistent for the edge costs
  the oracle reports. With an inadmissible heuristic neither optimality
  nor termination of compute_shortest_path() is guaranteed.
- `successors(node)` / `predecessors(node)` must describe the same edge
  set from both ends and must already reflect any cost change queued via
  queue_edge_update().

This module does not talk to the world; it only consumes the oracle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Hashable,
    Iterable,
    List,
    NamedTuple,
    Optional,
    Tuple,
    TypeVar,
)

from ..errors import NoPathError, OracleContractError
from .priority_queue import PriorityQueue
from .weights import FLOAT_WEIGHTS, WeightSpace

N = TypeVar("N", bound=Hashable)
W = TypeVar("W")


log = logging.getLogger(__name__)


class EdgeTo(NamedTuple):
    """Edge as seen from one endpoint: the other endpoint and the cost."""

    target: Any
    cost: Any


@dataclass(frozen=True)
class Edge(Generic[N, W]):
    """Directed edge predecessor → successor with the cost it had before a change."""

    predecessor: N
    successor: N
    cost: W


@dataclass
class VertexScore(Generic[W]):
    g: W
    rhs: W


class Priority(NamedTuple):
    """Queue key, ordered lexicographically: (k1, k2)."""

    k1: Any
    k2: Any


HeuristicFn = Callable[[Any, Any], Any]
NeighborsFn = Callable[[Any], Iterable[Tuple[Any, Any]]]


class DStarLite(Generic[N, W]):
    """
    Live shortest-path estimate from a moving start to a fixed goal.

    Typical loop:

        planner = DStarLite(start, goal, h, succ, pred)
        while True:
            nxt = planner.try_next()      # None once arrived
            if nxt is None:
                break
            ...move the agent...
            if costs changed:
                planner.queue_edge_update(edge, new_cost)
                planner.update_from_updated_edges()

    `tie_break` orders successors with equal path cost in try_next(); the
    default compares the nodes themselves, so nodes must be orderable
    unless a key function is given.
    """

    def __init__(
        self,
        start: N,
        goal: N,
        heuristic: HeuristicFn,
        successors: NeighborsFn,
        predecessors: NeighborsFn,
        *,
        weights: WeightSpace = FLOAT_WEIGHTS,
        tie_break: Optional[Callable[[N], Any]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.heuristic = heuristic
        self.successors = successors
        self.predecessors = predecessors
        self.weights = weights
        self._tie_break = tie_break if tie_break is not None else (lambda node: node)
        self._log = logger or log

        self.start: N = start
        self._start_last: N = start
        self._goal: N = goal

        self._queue: PriorityQueue[N, Priority] = PriorityQueue()
        self._k_m: W = weights.zero
        self._scores: Dict[N, VertexScore[W]] = {}
        self._default_score: VertexScore[W] = VertexScore(weights.infinity, weights.infinity)
        self.expansions = 0

        # Edge cost changes waiting for update_from_updated_edges().
        self.updated_edge_costs: List[Tuple[Edge[N, W], W]] = []

        self._scores[goal] = VertexScore(g=weights.infinity, rhs=weights.zero)
        self._queue.push(goal, Priority(heuristic(start, goal), weights.zero))
        self.compute_shortest_path()

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def goal(self) -> N:
        return self._goal

    @property
    def k_m(self) -> W:
        return self._k_m

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    def g(self, node: N) -> W:
        return self._score(node).g

    def rhs(self, node: N) -> W:
        return self._score(node).rhs

    def cost_to_goal(self) -> W:
        """Current shortest-path cost from start to goal (infinity if unreachable)."""
        return self._score(self.start).rhs

    def is_queued(self, node: N) -> bool:
        return node in self._queue

    # ------------------------------------------------------------------
    # Core algorithm
    # ------------------------------------------------------------------

    def calculate_key(self, node: N) -> Priority:
        score = self._score(node)
        min_score = score.g if score.g < score.rhs else score.rhs
        if self.weights.is_infinite(min_score):
            return Priority(self.weights.infinity, self.weights.infinity)
        add = self.weights.add
        return Priority(add(add(min_score, self.heuristic(self.start, node)), self._k_m), min_score)

    def update_vertex(self, node: N) -> None:
        """Sync the node's queue membership with its consistency."""
        score = self._score(node)
        queued = node in self._queue
        if score.g != score.rhs:
            if queued:
                self._queue.change_priority(node, self.calculate_key(node))
            else:
                self._queue.push(node, self.calculate_key(node))
        elif queued:
            self._queue.remove(node)

    def compute_shortest_path(self) -> int:
        """Expand inconsistent nodes until the start is settled. Returns expansions done."""
        add = self.weights.add
        expanded = 0

        while self._should_continue():
            u, k_old = self._queue.pop()
            k_new = self.calculate_key(u)
            if k_old < k_new:
                self._queue.push(u, k_new)
                continue

            expanded += 1
            u_score = self._score_mut(u)
            if u_score.g > u_score.rhs:
                # Overconsistent: settle u and relax its predecessors.
                u_score.g = u_score.rhs
                g_u = u_score.g
                self._queue.remove(u)
                for s, cost in self.predecessors(u):
                    if s != self._goal:
                        s_score = self._score_mut(s)
                        candidate = add(cost, g_u)
                        if candidate < s_score.rhs:
                            s_score.rhs = candidate
                    self.update_vertex(s)
            else:
                # Underconsistent: forget g(u) and repair everything that used it.
                g_old = u_score.g
                u_score.g = self.weights.infinity
                affected = list(self.predecessors(u))
                affected.append(EdgeTo(u, self.weights.zero))
                for s, cost in affected:
                    if s != self._goal and self._score(s).rhs == add(cost, g_old):
                        self._score_mut(s).rhs = self._best_successor_cost(s)
                    self.update_vertex(s)

        self.expansions += expanded
        self._log.debug(
            "compute_shortest_path expansions=%d queue=%d start=%r",
            expanded,
            len(self._queue),
            self.start,
        )
        return expanded

    def queue_edge_update(self, edge: Edge[N, W], new_cost: W) -> None:
        """Buffer a cost change; `edge.cost` must hold the previous cost."""
        self.updated_edge_costs.append((edge, new_cost))

    def update_from_updated_edges(self) -> int:
        """
        Absorb buffered edge-cost changes and re-converge.

        The node whose look-ahead depends on a changed edge is the edge's
        tail (`edge.predecessor`): its rhs is a cost-to-goal going through
        `edge.successor`. Changes are applied newest first; several changes
        to the same edge collapse into one from the oldest previous cost to
        the newest cost.

        Returns the number of changes absorbed.
        """
        add = self.weights.add
        self._k_m = add(self._k_m, self.heuristic(self._start_last, self.start))
        self._start_last = self.start

        oldest_cost: Dict[Tuple[N, N], W] = {}
        for edge, _ in self.updated_edge_costs:
            oldest_cost.setdefault((edge.predecessor, edge.successor), edge.cost)

        absorbed = 0
        seen = set()
        while self.updated_edge_costs:
            edge, new_cost = self.updated_edge_costs.pop()
            absorbed += 1
            key = (edge.predecessor, edge.successor)
            if key in seen:
                continue
            seen.add(key)
            old_cost = oldest_cost[key]

            u = edge.predecessor
            g_v = self._score(edge.successor).g
            if u == self._goal:
                self.update_vertex(u)
                continue

            if old_cost > new_cost:
                candidate = add(new_cost, g_v)
                if candidate < self._score(u).rhs:
                    self._score_mut(u).rhs = candidate
            elif self._score(u).rhs == add(old_cost, g_v):
                self._score_mut(u).rhs = self._best_successor_cost(u)
            self.update_vertex(u)

        self._log.debug("update_from_updated_edges absorbed=%d k_m=%r", absorbed, self._k_m)
        self.compute_shortest_path()
        return absorbed

    def set_start(self, node: N) -> None:
        """Relocate the agent to `node` (knock-back, teleport, rollback) and re-converge."""
        self.start = node
        self._k_m = self.weights.add(self._k_m, self.heuristic(self._start_last, node))
        self._start_last = node
        self.compute_shortest_path()

    def try_next(self) -> Optional[N]:
        """
        Advance the start to the best successor and return it.

        Returns None once the start is the goal.

        Raises:
            NoPathError: the goal is unreachable; the start is left as is.
            OracleContractError: the oracle yields no successors here.
        """
        if self.start == self._goal:
            return None

        if self.weights.is_infinite(self._score(self.start).rhs):
            raise NoPathError(self.start, self._goal)

        self.start = self._best_successor(self.start)
        return self.start

    def current_path(self, max_len: Optional[int] = None) -> List[N]:
        """
        Route the planner would currently follow, start first, without moving.

        Stops early when no path exists or after `max_len` nodes.
        """
        path = [self.start]
        node = self.start
        limit = max_len if max_len is not None else len(self._scores) + 1
        while node != self._goal and len(path) < limit:
            if self.weights.is_infinite(self._score(node).rhs):
                break
            node = self._best_successor(node)
            path.append(node)
        return path

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _score(self, node: N) -> VertexScore[W]:
        return self._scores.get(node, self._default_score)

    def _score_mut(self, node: N) -> VertexScore[W]:
        score = self._scores.get(node)
        if score is None:
            score = VertexScore(self.weights.infinity, self.weights.infinity)
            self._scores[node] = score
        return score

    def _should_continue(self) -> bool:
        top = self._queue.peek()
        if top is None:
            return False
        start_score = self._score(self.start)
        return top[1] < self.calculate_key(self.start) or start_score.rhs > start_score.g

    def _best_successor_cost(self, node: N) -> W:
        add = self.weights.add
        best = self.weights.infinity
        for target, cost in self.successors(node):
            candidate = add(cost, self._score(target).g)
            if candidate < best:
                best = candidate
        return best

    def _best_successor(self, node: N) -> N:
        add = self.weights.add
        candidates = [
            (add(cost, self._score(target).g), target)
            for target, cost in self.successors(node)
        ]
        if not candidates:
            raise OracleContractError(node)
        best_cost = min(c for c, _ in candidates)
        tied = [target for c, target in candidates if c == best_cost]
        if len(tied) == 1:
            return tied[0]
        return min(tied, key=self._tie_break)
