#!/usr/bin/env python3
import argparse, os
from pathlib import Path
import matplotlib
if "MPLBACKEND" not in os.environ:
    matplotlib.use("Agg")
import matplotlib.pyplot as plt

from typing import Optional, Sequence

from src.domains.puzzle15 import SIZE, Grid, parse_grid, scramble, is_solvable, format_grid
from src.search.branch_and_bound import solve, DEFAULT_STATE_BUDGET, POLICIES
from src.search.trace import TraceStep, complete_index, describe_path
from src.experiments.trace_table import write_trace_csv

def draw_board(grid: Grid, out_path: Path, title: Optional[str] = None):
    n = SIZE
    plt.figure(figsize=(3,3))
    ax = plt.gca()
    ax.set_xlim(0, n); ax.set_ylim(0, n)
    ax.set_xticks([]); ax.set_yticks([]); ax.invert_yaxis()
    # grid
    for i in range(n+1):
        ax.plot([0,n],[i,i], linewidth=1)
        ax.plot([i,i],[0,n], linewidth=1)
    # tiles
    for r, row in enumerate(grid):
        for c, t in enumerate(row):
            if t == 0: continue
            ax.text(c+0.5, r+0.6, str(t), ha="center", va="center", fontsize=16)
    if title:
        ax.set_title(title, fontsize=10)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(out_path, dpi=200)
    plt.close()

def save_frames(steps: Sequence[TraceStep], outdir: Path) -> int:
    """Draw the board of every state on the solution path of the final step."""
    final = steps[complete_index(steps)]
    labels = describe_path(final.states, final.path)
    for i, (sid, label) in enumerate(zip(final.path, labels)):
        draw_board(final.states[sid].grid, outdir / f"step_{i:03d}.png", title=label)
    return len(final.path)

def print_steps(steps: Sequence[TraceStep]):
    for i, st in enumerate(steps):
        print(f"[{i:5d}] {st.phase:<8s} {st.description}  "
              f"(active={len(st.active_states)} explored={len(st.explored_states)} pruned={len(st.pruned_states)})")

def main():
    p = argparse.ArgumentParser(description="Solve one 15-puzzle with branch and bound and report the trace.")
    p.add_argument("--grid", default=None, help="16 comma-separated numbers, row-major, 0 is the blank")
    p.add_argument("--depth", type=int, default=10, help="Scramble depth when --grid is not given")
    p.add_argument("--seed", type=int, default=1)
    p.add_argument("--budget", type=int, default=DEFAULT_STATE_BUDGET)
    p.add_argument("--policy", choices=list(POLICIES), default="first")
    p.add_argument("--force", action="store_true", help="Search even if the parity check says unsolvable")
    p.add_argument("--steps", action="store_true", help="Print every trace step")
    p.add_argument("--trace-csv", type=Path, default=None)
    p.add_argument("--frames", type=Path, default=None, help="Directory for board images along the path")
    args = p.parse_args()

    if args.grid is not None:
        try:
            start = parse_grid(args.grid)
        except ValueError as e:
            p.error(str(e))
    else:
        start = scramble(args.depth, args.seed)

    if not is_solvable(start) and not args.force:
        p.error("This puzzle configuration is not solvable. Please try a different one.")

    print(format_grid(start))
    res, steps = solve(start, state_budget=args.budget, policy=args.policy)

    if args.steps:
        print_steps(steps)
    if args.trace_csv is not None:
        print(f"Saved: {write_trace_csv(steps, args.trace_csv)}")

    if not res.solved:
        print(f"No solution found ({res.termination}) after {res.generated} generated states. "
              f"Try a larger --budget.")
        return

    final = steps[complete_index(steps)]
    print(f"Solved in {res.cost} moves ({res.expanded} expanded, {res.generated} generated, "
          f"{len(steps)} trace steps, {res.time:.3f}s)")
    for line in describe_path(final.states, final.path):
        print(" ", line)

    if args.frames is not None:
        n = save_frames(steps, args.frames)
        print(f"Saved {n} frames to {args.frames}")

if __name__ == "__main__":
    main()
