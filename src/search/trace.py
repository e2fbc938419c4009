from __future__ import annotations
from collections.abc import Sequence as SequenceABC
from dataclasses import dataclass
from itertools import islice
from typing import Callable, Iterable, Iterator, List, Literal, Optional, Sequence, Tuple

from src.search.state_graph import GraphSnapshot, StateGraph

Phase = Literal["init", "branch", "bound", "prune", "complete"]
PHASES: Tuple[str, ...] = ("init", "branch", "bound", "prune", "complete")


class IdView(SequenceABC):
    """Immutable sequence of state ids; equal to any tuple or list holding the same ids."""
    __slots__ = ()

    def __eq__(self, other):
        if isinstance(other, (IdView, tuple, list)):
            return tuple(self) == tuple(other)
        return NotImplemented

    def __hash__(self):
        return hash(tuple(self))

    def __add__(self, other):
        return tuple(self) + tuple(other)

    def __radd__(self, other):
        return tuple(other) + tuple(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}{tuple(self)!r}"


class PrefixIds(IdView):
    """First n ids of an append-only list."""
    __slots__ = ("_items", "_n")

    def __init__(self, items: Sequence[int], n: int):
        self._items = items
        self._n = n

    def __len__(self) -> int:
        return self._n

    def __iter__(self) -> Iterator[int]:
        return islice(self._items, self._n)

    def __getitem__(self, i):
        if isinstance(i, slice):
            return tuple(self)[i]
        if i < 0:
            i += self._n
        if not 0 <= i < self._n:
            raise IndexError(i)
        return self._items[i]


class FrontierIds(IdView):
    """
    Frontier contents after the first n entries of a push/pop log.
    Log entries are +id for a push and -id for a removal; the ids are rebuilt in
    (total_cost, id) order on access, so holding a view costs O(1).
    """
    __slots__ = ("_log", "_n", "_size", "_states")

    def __init__(self, log: Sequence[int], n: int, size: int, states: GraphSnapshot):
        self._log = log
        self._n = n
        self._size = size
        self._states = states

    def _ids(self) -> Tuple[int, ...]:
        live = set()
        for entry in islice(self._log, self._n):
            if entry > 0:
                live.add(entry)
            else:
                live.discard(-entry)
        return tuple(sorted(live, key=lambda sid: (self._states[sid].total_cost, sid)))

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[int]:
        return iter(self._ids())

    def __getitem__(self, i):
        return self._ids()[i]


@dataclass(frozen=True)
class TraceStep:
    """One search event plus a self-contained snapshot of everything known at that point."""
    phase: Phase
    description: str
    current_state_id: int
    best_state_id: Optional[int]
    states: GraphSnapshot
    active_states: Sequence[int]
    explored_states: Sequence[int]
    pruned_states: Sequence[int]
    path: Tuple[int, ...] = ()

    def __post_init__(self):
        if self.phase not in PHASES:
            raise ValueError(f"unknown trace phase: {self.phase!r}")

    @property
    def current_state(self):
        return self.states[self.current_state_id]


class TraceRecorder:
    """
    Builds the ordered step log for one search.
    explored/pruned live in append-only lists; each step keeps a prefix view of
    them, so earlier steps never see later marks.
    on_step: optional callable(step) invoked synchronously after each append.
    """

    def __init__(self, on_step: Optional[Callable[[TraceStep], None]] = None):
        self.steps: List[TraceStep] = []
        self._explored: List[int] = []
        self._pruned: List[int] = []
        self._on_step = on_step

    @property
    def explored(self) -> PrefixIds:
        return PrefixIds(self._explored, len(self._explored))

    @property
    def pruned(self) -> PrefixIds:
        return PrefixIds(self._pruned, len(self._pruned))

    def mark_explored(self, state_id: int) -> None:
        self._explored.append(state_id)

    def mark_pruned(self, state_id: int) -> None:
        self._pruned.append(state_id)

    def record(
        self,
        phase: Phase,
        description: str,
        current_id: int,
        best_id: Optional[int],
        graph: StateGraph,
        frontier_ids: Iterable[int],
        path: Sequence[int] = (),
    ) -> TraceStep:
        # views are kept as-is; plain iterables are frozen into a tuple
        active = frontier_ids if isinstance(frontier_ids, IdView) else tuple(frontier_ids)
        step = TraceStep(
            phase=phase,
            description=description,
            current_state_id=current_id,
            best_state_id=best_id,
            states=graph.snapshot(),
            active_states=active,
            explored_states=self.explored,
            pruned_states=self.pruned,
            path=tuple(path),
        )
        self.steps.append(step)
        if self._on_step is not None:
            self._on_step(step)
        return step

# ---------- Replay helpers ----------

def complete_index(steps: Sequence[TraceStep]) -> int:
    """Index of the last 'complete' step, else of the last step (-1 for an empty trace)."""
    for i in range(len(steps) - 1, -1, -1):
        if steps[i].phase == "complete":
            return i
    return len(steps) - 1

def describe_path(states: GraphSnapshot, path: Sequence[int]) -> List[str]:
    out: List[str] = []
    for i, sid in enumerate(path):
        st = states[sid]
        if i == 0:
            out.append("Initial State")
        else:
            out.append(f"Move {i}: Tile {st.moved_tile} {st.move}")
    return out
