from __future__ import annotations
from pathlib import Path
from typing import Sequence

import pandas as pd

from src.search.trace import TraceStep

COLUMNS = [
    "step", "phase", "current_state", "best_state", "g", "h", "f",
    "states", "active", "explored", "pruned", "path_len", "description",
]

def trace_frame(steps: Sequence[TraceStep]) -> pd.DataFrame:
    """One row per trace step; sizes are taken from each step's own snapshot."""
    rows = []
    for i, st in enumerate(steps):
        cur = st.current_state
        rows.append({
            "step": i,
            "phase": st.phase,
            "current_state": st.current_state_id,
            "best_state": st.best_state_id,
            "g": cur.cost,
            "h": cur.heuristic,
            "f": cur.total_cost,
            "states": len(st.states),
            "active": len(st.active_states),
            "explored": len(st.explored_states),
            "pruned": len(st.pruned_states),
            "path_len": len(st.path),
            "description": st.description,
        })
    df = pd.DataFrame(rows, columns=COLUMNS)
    df["best_state"] = pd.to_numeric(df["best_state"]).astype("Int64")
    return df

def write_trace_csv(steps: Sequence[TraceStep], out: Path) -> Path:
    out = Path(out)
    out.parent.mkdir(parents=True, exist_ok=True)
    trace_frame(steps).to_csv(out, index=False)
    return out

def phase_counts(steps: Sequence[TraceStep]) -> pd.Series:
    return trace_frame(steps)["phase"].value_counts()
