from __future__ import annotations
import argparse, csv
from dataclasses import dataclass
from pathlib import Path
from typing import List

from src.domains.puzzle15 import Grid, scramble, is_solvable, make_unsolvable_variant
from src.search.branch_and_bound import solve, DEFAULT_STATE_BUDGET, POLICIES

@dataclass
class Instance:
    seed: int
    depth: int
    state: Grid

def _gen(depths: List[int], per_depth: int, start_seed: int = 0) -> List[Instance]:
    out: List[Instance] = []
    seed = start_seed
    for d in depths:
        made = 0
        attempts = 0
        while made < per_depth:
            s = scramble(d, seed)
            attempts += 1
            if is_solvable(s):
                out.append(Instance(seed=seed, depth=d, state=s))
                made += 1
            seed += 1
            if attempts > per_depth * 2000:
                raise RuntimeError(f"Instance generation took too long at depth={d}. Check solvability logic.")
    return out

HEADER = [
    "algorithm", "policy", "depth", "seed", "budget",
    "expanded", "generated", "duplicates", "pruned", "g", "time_sec",
    "peak_open", "trace_steps", "termination", "solvable",
]

def run_instances(insts: List[Instance], out: Path, budget: int = DEFAULT_STATE_BUDGET,
                  policy: str = "first", include_unsolvable: bool = False) -> int:
    """Solve every instance (and optionally its unsolvable twin); returns rows written."""
    out.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    with out.open("w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=HEADER)
        w.writeheader()
        for inst in insts:
            variants = [(inst.state, 1)]
            if include_unsolvable:
                variants.append((make_unsolvable_variant(inst.state), 0))
            for grid, solvable_flag in variants:
                res, steps = solve(grid, state_budget=budget, policy=policy)
                row = res.as_row()
                row.update(depth=inst.depth, seed=inst.seed, budget=budget,
                           trace_steps=len(steps), solvable=solvable_flag)
                w.writerow(row)
                written += 1
    return written

def main():
    ap = argparse.ArgumentParser(description="Branch-and-bound 15-puzzle experiment runner")
    ap.add_argument("--depths", type=int, nargs="+", default=[4, 8, 12, 16, 20])
    ap.add_argument("--per_depth", type=int, default=10)
    ap.add_argument("--budget", type=int, default=DEFAULT_STATE_BUDGET, help="Max states created per search")
    ap.add_argument("--policy", choices=list(POLICIES), default="first")
    ap.add_argument("--start_seed", type=int, default=0)
    ap.add_argument("--include_unsolvable", action="store_true", help="Also run the parity-flipped variant")
    ap.add_argument("--out", type=Path, default=Path("results/last_run.csv"))
    args = ap.parse_args()

    if args.budget < 1:
        ap.error("--budget must be >= 1")

    insts = _gen(args.depths, args.per_depth, args.start_seed)
    n = run_instances(insts, args.out, budget=args.budget, policy=args.policy,
                      include_unsolvable=args.include_unsolvable)
    print(f"Wrote {args.out} ({len(insts)} instances, {n} runs)")

if __name__ == "__main__":
    main()
