#!/usr/bin/env python3
import sys, os, argparse
from pathlib import Path

import numpy as np
import pandas as pd
import matplotlib
# Default to a non-interactive backend; we'll only show() if --show
if "MPLBACKEND" not in os.environ:
    matplotlib.use("Agg")
import matplotlib.pyplot as plt

RUN_METRICS = ["expanded", "generated", "time_sec"]
TRACE_SERIES = [("active", "frontier"), ("explored", "explored"), ("pruned", "pruned")]

def load_runs(paths) -> pd.DataFrame:
    dfs = []
    for p in paths:
        df = pd.read_csv(p)
        df["__src__"] = Path(p).name
        dfs.append(df)
    if not dfs:
        return pd.DataFrame()
    df = pd.concat(dfs, ignore_index=True, sort=False)
    for c in ("depth", "expanded", "generated", "duplicates", "pruned", "time_sec", "solvable"):
        if c in df.columns:
            df[c] = pd.to_numeric(df[c], errors="coerce")
    return df

def agg_by_depth(df: pd.DataFrame, metric: str) -> pd.DataFrame:
    """mean/std/n of one metric per (policy, termination, depth)."""
    keys = [k for k in ("policy", "termination") if k in df.columns]
    g = df.dropna(subset=[metric]).groupby(keys + ["depth"])[metric]
    out = g.agg(["mean", "std", "count"]).reset_index()
    out["std"] = out["std"].fillna(0.0)
    return out

def plot_metric(ax, df: pd.DataFrame, metric: str):
    table = agg_by_depth(df, metric)
    keys = [k for k in ("policy", "termination") if k in table.columns]
    groups = list(table.groupby(keys)) if keys else [((), table)]
    offsets = np.linspace(-0.15, 0.15, num=len(groups)) if len(groups) > 1 else [0.0]
    for off, (key, sub) in zip(offsets, groups):
        key = key if isinstance(key, tuple) else (key,)
        label = " | ".join(str(k) for k in key) or metric
        xs = sub["depth"].to_numpy(dtype=float) + off
        ax.errorbar(xs, sub["mean"], yerr=sub["std"], marker="o", capsize=3, label=label)
    ax.set_xlabel("Depth")
    ax.set_ylabel(metric)
    ax.set_title(f"{metric} vs Depth (mean ± std)")
    ax.grid(True)
    ax.legend()

def plot_trace(ax, trace: pd.DataFrame):
    for col, label in TRACE_SERIES:
        ax.plot(trace["step"], trace[col], label=label)
    done = trace.index[trace["phase"] == "complete"]
    for i in done:
        ax.axvline(trace.loc[i, "step"], linestyle="--", linewidth=1)
    ax.set_xlabel("Trace step")
    ax.set_ylabel("states")
    ax.set_title("Search progress")
    ax.grid(True)
    ax.legend()

def save_fig(fig, outdir: Path, name: str) -> Path:
    outdir.mkdir(parents=True, exist_ok=True)
    path = outdir / f"{name}.png"
    fig.savefig(path, dpi=200, bbox_inches="tight")
    print(f"Saved: {path}")
    return path

def main():
    ap = argparse.ArgumentParser(description="Plot runner CSVs or a trace CSV and save PNGs.")
    ap.add_argument("csv", nargs="+", help="Runner result CSVs (or one trace CSV with --trace)")
    ap.add_argument("--trace", action="store_true", help="Input is a trace CSV from solve_one --trace-csv")
    ap.add_argument("--save", default="results/plots", help="Directory to save plots")
    ap.add_argument("--show", action="store_true", help="Also open interactive windows (if GUI available)")
    args = ap.parse_args()

    outdir = Path(args.save)
    if args.trace:
        trace = pd.read_csv(args.csv[0])
        fig, ax = plt.subplots(figsize=(8, 5))
        plot_trace(ax, trace)
        save_fig(fig, outdir, f"{Path(args.csv[0]).stem}_trace")
    else:
        df = load_runs(args.csv)
        if df.empty:
            print("No rows to plot. Are your CSVs empty?")
            sys.exit(0)
        base = "combo" if len(args.csv) > 1 else Path(args.csv[0]).stem
        fig, axes = plt.subplots(1, len(RUN_METRICS), figsize=(15, 5))
        for ax, metric in zip(axes, RUN_METRICS):
            plot_metric(ax, df, metric)
        plt.tight_layout()
        save_fig(fig, outdir, f"{base}_combined")

    if args.show:
        plt.show()

if __name__ == "__main__":
    main()
