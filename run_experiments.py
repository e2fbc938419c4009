#!/usr/bin/env python3
import subprocess, sys
from pathlib import Path

def run(cmd):
    print("Running:", cmd)
    r = subprocess.run(cmd, shell=True)
    if r.returncode != 0:
        sys.exit(r.returncode)

def main():
    Path("results").mkdir(exist_ok=True)
    run("python -m src.experiments.runner --depths 4 8 12 16 --per_depth 10 --policy first --out results/bnb_first.csv")
    run("python -m src.experiments.runner --depths 4 8 12 16 --per_depth 10 --policy best --out results/bnb_best.csv")
    run("python -m src.experiments.runner --depths 4 8 --per_depth 5 --budget 2000 --include_unsolvable --out results/bnb_unsolvable.csv")
    run("python -m src.experiments.plot results/bnb_first.csv results/bnb_best.csv --save results/plots")

if __name__ == "__main__":
    main()
