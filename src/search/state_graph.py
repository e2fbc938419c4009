from __future__ import annotations
from dataclasses import dataclass
from itertools import islice
from typing import Iterator, List, Optional, Sequence

from src.domains.puzzle15 import Grid, Position, find_blank

@dataclass(frozen=True)
class PuzzleState:
    id: int
    grid: Grid
    blank_pos: Position
    cost: int
    heuristic: int
    total_cost: int
    parent: Optional[int] = None
    move: Optional[str] = None
    moved_tile: Optional[int] = None


def _path_to(states: Sequence[PuzzleState], state_id: int) -> List[int]:
    path: List[int] = []
    sid: Optional[int] = state_id
    while sid is not None:
        path.append(sid)
        sid = states[sid - 1].parent
    path.reverse()
    return path


class GraphSnapshot:
    """Read-only view of the first n states of an append-only arena.

    The arena list is shared, not copied: states are never removed or replaced,
    so a prefix taken earlier keeps describing exactly the states that existed then.
    """
    __slots__ = ("_states", "_n")

    def __init__(self, states: Sequence[PuzzleState], n: Optional[int] = None):
        self._states = states
        self._n = len(states) if n is None else n

    def __len__(self) -> int:
        return self._n

    def __iter__(self) -> Iterator[PuzzleState]:
        return islice(self._states, self._n)

    def __contains__(self, state_id: object) -> bool:
        return isinstance(state_id, int) and 1 <= state_id <= self._n

    def __getitem__(self, state_id: int) -> PuzzleState:
        if state_id not in self:
            raise KeyError(state_id)
        return self._states[state_id - 1]

    def get(self, state_id: int) -> Optional[PuzzleState]:
        return self._states[state_id - 1] if state_id in self else None

    def path_to(self, state_id: int) -> List[int]:
        if state_id not in self:
            raise KeyError(state_id)
        return _path_to(self._states, state_id)


class StateGraph:
    """Append-only arena of search states keyed by id; ids start at 1 and are never reused."""

    def __init__(self):
        self._states: List[PuzzleState] = []
        self._frozen: Optional[GraphSnapshot] = None

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[PuzzleState]:
        return iter(self._states)

    def get(self, state_id: int) -> PuzzleState:
        if not 1 <= state_id <= len(self._states):
            raise KeyError(state_id)
        return self._states[state_id - 1]

    def _append(self, **fields) -> PuzzleState:
        state = PuzzleState(id=len(self._states) + 1, **fields)
        self._states.append(state)
        self._frozen = None
        return state

    def add_root(self, grid: Grid, heuristic: int) -> PuzzleState:
        if self._states:
            raise ValueError("graph already has a root")
        return self._append(grid=grid, blank_pos=find_blank(grid), cost=0,
                            heuristic=heuristic, total_cost=heuristic)

    def add_child(self, parent: PuzzleState, grid: Grid, blank_pos: Position,
                  heuristic: int, move: str, moved_tile: int) -> PuzzleState:
        g = parent.cost + 1
        return self._append(grid=grid, blank_pos=blank_pos, cost=g, heuristic=heuristic,
                            total_cost=g + heuristic, parent=parent.id,
                            move=move, moved_tile=moved_tile)

    def path_to(self, state_id: int) -> List[int]:
        """Root-first ids obtained by walking parent links."""
        return _path_to(self._states, state_id)

    def snapshot(self) -> GraphSnapshot:
        # reused until the next state is appended
        if self._frozen is None:
            self._frozen = GraphSnapshot(self._states, len(self._states))
        return self._frozen
