from __future__ import annotations
from typing import Iterable, List, Tuple
import random

SIZE = 4
Position = Tuple[int, int]
Grid = Tuple[Tuple[int, ...], ...]  # 4 rows of 4 tiles, 0 is the blank

GOAL: Grid = tuple(
    tuple((r * SIZE + c + 1) % (SIZE * SIZE) for c in range(SIZE)) for r in range(SIZE)
)

# Blank moves; this order fixes tie-breaks and therefore the trace.
DIRECTIONS: Tuple[Tuple[str, int, int], ...] = (
    ("up", -1, 0),
    ("down", 1, 0),
    ("left", 0, -1),
    ("right", 0, 1),
)

# ---------- Core dynamics ----------

def is_goal(grid: Grid) -> bool:
    return grid == GOAL

def find_blank(grid: Grid) -> Position:
    for r, row in enumerate(grid):
        for c, tile in enumerate(row):
            if tile == 0:
                return (r, c)
    raise ValueError("grid has no blank cell")

def neighbor_moves(blank_pos: Position) -> List[Tuple[str, Position]]:
    """Return [(direction, target)] for every legal blank move, in up/down/left/right order."""
    r, c = blank_pos
    out: List[Tuple[str, Position]] = []
    for name, dr, dc in DIRECTIONS:
        nr, nc = r + dr, c + dc
        if 0 <= nr < SIZE and 0 <= nc < SIZE:
            out.append((name, (nr, nc)))
    return out

def apply_move(grid: Grid, blank_pos: Position, target: Position) -> Tuple[Grid, int]:
    """Swap the blank with the tile at target. Returns (new_grid, moved_tile)."""
    rows = [list(row) for row in grid]
    br, bc = blank_pos
    tr, tc = target
    moved = rows[tr][tc]
    rows[br][bc], rows[tr][tc] = moved, 0
    return tuple(tuple(row) for row in rows), moved

def canonical_key(grid: Grid) -> Tuple[int, ...]:
    return to_flat(grid)

# ---------- Conversions & input ----------

def to_flat(grid: Grid) -> Tuple[int, ...]:
    return tuple(t for row in grid for t in row)

def from_flat(values: Iterable[int]) -> Grid:
    vals = list(values)
    return tuple(tuple(vals[r * SIZE:(r + 1) * SIZE]) for r in range(SIZE))

def validate_grid(values: Iterable[int]) -> Tuple[int, ...]:
    vals = tuple(values)
    if len(vals) != SIZE * SIZE:
        raise ValueError("Input must contain exactly 16 numbers")
    if not all(0 <= v <= SIZE * SIZE - 1 for v in vals):
        raise ValueError("Numbers must be between 0 and 15")
    if len(set(vals)) != SIZE * SIZE:
        raise ValueError("All numbers must be unique")
    return vals

def parse_grid(text: str) -> Grid:
    """Parse '1,2,3,...,0' (whitespace ignored) into a validated grid."""
    cleaned = "".join(text.split())
    try:
        vals = [int(x) for x in cleaned.split(",")]
    except ValueError:
        raise ValueError("Invalid input format") from None
    return from_flat(validate_grid(vals))

def format_grid(grid: Grid) -> str:
    return "\n".join(" ".join(f"{t:>2}" if t else " ." for t in row) for row in grid)

# ---------- Instance generation ----------

def is_solvable(grid: Grid) -> bool:
    """4x4 rule: (inversions + blank row counted 1-based from the bottom) must be odd."""
    arr = [x for x in to_flat(grid) if x != 0]
    inv = 0
    for i in range(len(arr)):
        for j in range(i + 1, len(arr)):
            if arr[i] > arr[j]:
                inv += 1
    blank_row_from_bottom = SIZE - find_blank(grid)[0]
    return ((inv + blank_row_from_bottom) % 2) == 1

def scramble(depth: int, seed: int) -> Grid:
    """Depth-limited random walk from GOAL with no immediate backtrack."""
    rng = random.Random(seed)
    s = GOAL
    blank = find_blank(s)
    last_blank = None
    for _ in range(depth):
        cand = [t for _, t in neighbor_moves(blank)]
        if last_blank in cand and len(cand) > 1:
            cand.remove(last_blank)
        target = rng.choice(cand)
        s, _ = apply_move(s, blank, target)
        last_blank, blank = blank, target
    return s

def make_unsolvable_variant(grid: Grid) -> Grid:
    """Swap the first two non-blank tiles, flipping the permutation parity."""
    lst = list(to_flat(grid))
    i = next(k for k, v in enumerate(lst) if v != 0)
    j = next(k for k, v in enumerate(lst[i + 1:], start=i + 1) if v != 0)
    lst[i], lst[j] = lst[j], lst[i]
    return from_flat(lst)
