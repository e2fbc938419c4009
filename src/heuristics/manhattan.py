from typing import Dict, Tuple
from src.domains.puzzle15 import SIZE, Grid

_goal_pos: Dict[int, Tuple[int, int]] = {t: divmod(t - 1, SIZE) for t in range(1, SIZE * SIZE)}

def manhattan(grid: Grid) -> int:
    """Sum of Manhattan distances to goal positions (blank ignored)."""
    dist = 0
    for r, row in enumerate(grid):
        for c, tile in enumerate(row):
            if tile == 0:
                continue
            gr, gc = _goal_pos[tile]
            dist += abs(r - gr) + abs(c - gc)
    return dist
