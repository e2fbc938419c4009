from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set, Tuple
from time import perf_counter
import bisect

from src.domains.puzzle15 import Grid, is_goal, neighbor_moves, apply_move, canonical_key
from src.heuristics.manhattan import manhattan
from src.search.state_graph import PuzzleState, StateGraph
from src.search.trace import FrontierIds, TraceRecorder, TraceStep

DEFAULT_STATE_BUDGET = 1000
POLICIES = ("first", "best")


@dataclass(frozen=True)
class SolveOutcome:
    solved: bool
    termination: str               # "ok" | "exhausted" | "budget"
    path: Tuple[int, ...] = ()
    moves: Tuple[Tuple[str, int], ...] = ()
    cost: Optional[int] = None
    expanded: int = 0
    generated: int = 0
    duplicates: int = 0
    pruned: int = 0
    peak_open: int = 0
    time: float = 0.0
    algorithm: str = "B&B"
    policy: str = "first"

    def as_row(self) -> Dict[str, object]:
        return {
            "algorithm": self.algorithm,
            "policy": self.policy,
            "expanded": self.expanded,
            "generated": self.generated,
            "duplicates": self.duplicates,
            "pruned": self.pruned,
            "g": "" if self.cost is None else self.cost,
            "time_sec": f"{self.time:.6f}",
            "peak_open": self.peak_open,
            "termination": self.termination,
        }


class _Frontier:
    """Ids ordered by (total_cost, id); ids grow with generation order, so equal costs stay FIFO."""

    def __init__(self):
        self._items: List[Tuple[int, int]] = []
        self._log: List[int] = []

    def __len__(self) -> int:
        return len(self._items)

    def push(self, state: PuzzleState) -> None:
        bisect.insort(self._items, (state.total_cost, state.id))
        self._log.append(state.id)

    def pop(self) -> int:
        sid = self._items.pop(0)[1]
        self._log.append(-sid)
        return sid

    def view(self, graph: StateGraph) -> FrontierIds:
        return FrontierIds(self._log, len(self._log), len(self._items), graph.snapshot())


def solve(
    initial_grid: Grid,
    state_budget: int = DEFAULT_STATE_BUDGET,
    hfun: Callable[[Grid], int] = manhattan,
    policy: str = "first",
    on_step: Optional[Callable[[TraceStep], None]] = None,
) -> Tuple[SolveOutcome, List[TraceStep]]:
    """
    Best-first branch and bound over 4x4 grids with a full step trace.

    state_budget: maximum number of states (root included) the search may create.
            Once the graph reaches it, the state being expanded stops generating
            children, so its last expansion may cover fewer than its four
            neighbors and the trace ends right after the last child created.
    policy: "first" accepts the first goal popped from the frontier;
            "best" keeps the goal as incumbent and keeps popping, pruning every
            state whose total cost cannot beat it, until the frontier is empty.
            The goal grid is generated at most once, so the incumbent is never
            replaced. With hfun(goal) >= 0 the incumbent had the lowest f on
            the frontier, so every later pop is pruned; children are only
            bound-tested (and possibly pruned) when hfun(goal) < 0.
    on_step: optional callable(step) invoked as each trace step is recorded.

    The input grid must already be a valid arrangement of 0..15. Unsolvable or
    too-hard instances end with solved=False, never with an exception.
    Steps share the state arena and the frontier log; each holds prefix views
    of them rather than copies.
    """
    if state_budget < 1:
        raise ValueError(f"state_budget must be >= 1, got {state_budget}")
    if policy not in POLICIES:
        raise ValueError(f"unknown policy {policy!r}; expected one of {POLICIES}")
    t0 = perf_counter()

    graph = StateGraph()
    trace = TraceRecorder(on_step=on_step)
    frontier = _Frontier()
    visited: Set[Tuple[int, ...]] = set()

    h0 = hfun(initial_grid)
    root = graph.add_root(initial_grid, h0)
    frontier.push(root)
    visited.add(canonical_key(initial_grid))
    best: Optional[PuzzleState] = None
    best_path: Tuple[int, ...] = ()
    trace.record("init", f"Initialize with initial state. Manhattan distance heuristic: {h0}",
                 root.id, None, graph, frontier.view(graph))

    expanded = 0
    duplicates = 0
    peak_open = 1
    done = False

    while len(frontier) > 0 and len(graph) < state_budget:
        current = graph.get(frontier.pop())
        best_id = best.id if best is not None else None

        if best is not None and current.total_cost >= best.cost:
            # policy="best" only: queued before the incumbent existed
            trace.mark_pruned(current.id)
            trace.record(
                "prune",
                f"Prune state {current.id} as its total cost ({current.total_cost}) "
                f"is not better than current best ({best.cost})",
                current.id, best_id, graph, frontier.view(graph), best_path,
            )
            continue

        trace.mark_explored(current.id)
        trace.record("branch", f"Select state {current.id} with lowest total cost ({current.total_cost})",
                     current.id, best_id, graph, frontier.view(graph), best_path)

        if is_goal(current.grid):
            best = current
            best_path = tuple(graph.path_to(current.id))
            if policy == "first":
                trace.record("complete", f"Solution found! Total moves: {current.cost}",
                             current.id, best.id, graph, frontier.view(graph), best_path)
                done = True
                break
            trace.record("bound", f"New best solution with {current.cost} moves; bound tightened to {current.cost}",
                         current.id, best.id, graph, frontier.view(graph), best_path)
            continue

        expanded += 1
        for direction, target in neighbor_moves(current.blank_pos):
            new_grid, moved = apply_move(current.grid, current.blank_pos, target)
            key = canonical_key(new_grid)
            if key in visited:
                duplicates += 1
                continue
            if len(graph) >= state_budget:
                break
            visited.add(key)

            child = graph.add_child(current, new_grid, target, hfun(new_grid), direction, moved)
            trace.record(
                "branch",
                f"Move tile {moved} {direction}. New state {child.id} with cost {child.cost} "
                f"+ heuristic {child.heuristic} = {child.total_cost}",
                child.id, best_id, graph, frontier.view(graph), best_path,
            )

            # reachable only when hfun(goal) < 0
            if best is not None and child.total_cost >= best.cost:
                trace.mark_pruned(child.id)
                trace.record(
                    "prune",
                    f"Prune state {child.id} as its total cost ({child.total_cost}) "
                    f"is not better than current best ({best.cost})",
                    child.id, best.id, graph, frontier.view(graph), best_path,
                )
                continue

            frontier.push(child)
            peak_open = max(peak_open, len(frontier))
            trace.record("bound", f"Add state {child.id} to queue with total cost {child.total_cost}",
                         child.id, best_id, graph, frontier.view(graph), best_path)

    if not done:
        if best is not None:
            trace.record("complete", f"Search finished. Best solution: {best.cost} moves",
                         best.id, best.id, graph, frontier.view(graph), best_path)
        else:
            trace.record("complete", "No solution found within the search limit.",
                         trace.steps[-1].current_state_id, None, graph, frontier.view(graph))

    if best is not None:
        termination = "ok"
    elif len(frontier) == 0:
        termination = "exhausted"
    else:
        termination = "budget"

    moves = tuple((graph.get(sid).move, graph.get(sid).moved_tile) for sid in best_path[1:])
    outcome = SolveOutcome(
        solved=best is not None,
        termination=termination,
        path=best_path,
        moves=moves,
        cost=best.cost if best is not None else None,
        expanded=expanded,
        generated=len(graph) - 1,
        duplicates=duplicates,
        pruned=len(trace.pruned),
        peak_open=peak_open,
        time=perf_counter() - t0,
        policy=policy,
    )
    return outcome, trace.steps
