from __future__ import annotations

import os
import re
from collections import Counter
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from .aggregate import SEPARATOR

COLUMNS = ["symbol", "self_count", "total_count", "percent", "cum_percent"]

_FOLDED_RE = re.compile(r"^(?P<stack>.*?\S)\s+(?P<count>\d+)$")


def split_folded(line: str) -> Optional[Tuple[List[str], int]]:
    """
    "app;main;work 720" -> (["app", "main", "work"], 720); blank lines give None.
    """
    s = line.strip()
    if not s:
        return None
    m = _FOLDED_RE.match(s)
    if m is None:
        raise ValueError(f"not a folded stack line: {line!r}")
    frames = [f for f in m.group("stack").split(SEPARATOR) if f]
    if not frames:
        raise ValueError(f"folded line without frames: {line!r}")
    return frames, int(m.group("count"))


def accumulate(lines: Iterable[str], *, skip_process: bool = False) -> Tuple[Counter, Counter, int]:
    """
    Returns (self_counts, total_counts, total_samples).

    A recursive symbol counts once per stack in ``total_counts``.
    """
    self_counts: Counter = Counter()
    total_counts: Counter = Counter()
    total_samples = 0

    for line in lines:
        parsed = split_folded(line)
        if parsed is None:
            continue
        frames, count = parsed
        if skip_process:
            frames = frames[1:]
        total_samples += count
        if not frames:
            continue

        self_counts[frames[-1]] += count
        for frame in set(frames):
            total_counts[frame] += count

    return self_counts, total_counts, total_samples


def flat_frame(self_counts: Counter, total_counts: Counter, total_samples: int) -> pd.DataFrame:
    """Flat profile table sorted by self count desc, then symbol asc."""
    if total_samples <= 0:
        raise ValueError("no samples")

    df = pd.DataFrame(
        {
            "symbol": list(total_counts.keys()),
            "total_count": [int(v) for v in total_counts.values()],
        }
    )
    if df.empty:
        return pd.DataFrame(columns=COLUMNS)
    df["self_count"] = df["symbol"].map(lambda s: int(self_counts.get(s, 0)))
    df = df.sort_values(["self_count", "symbol"], ascending=[False, True], kind="mergesort")
    df["percent"] = df["self_count"] / float(total_samples) * 100.0
    df["cum_percent"] = df["percent"].cumsum()
    return df[COLUMNS].reset_index(drop=True)


def select_rows(df: pd.DataFrame, *, top: Optional[int] = None, thr_percent: Optional[float] = None) -> pd.DataFrame:
    # cum_percent keeps the values of the full table
    if thr_percent is not None:
        df = df[df["percent"] >= thr_percent]
    if top is not None:
        df = df.head(max(0, top))
    return df.reset_index(drop=True)


def format_flat(df: pd.DataFrame, total_samples: int) -> List[str]:
    out = [f"{'%':>6} {'cum%':>8} {'self':>12} {'total':>12}  symbol"]
    for r in df.itertuples(index=False):
        out.append(
            f"{r.percent:6.2f} {r.cum_percent:8.2f} "
            f"{int(r.self_count):12d} {int(r.total_count):12d}  {r.symbol}"
        )
    out.append(f"total_samples: {total_samples}")
    return out
"""
     %     cum%         self        total  symbol
 80.00    80.00            8            8  work
 20.00   100.00            2           10  main
  0.00   100.00            0           10  app
total_samples: 10
"""


def write_csv(df: pd.DataFrame, path: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    df.to_csv(path, index=False, float_format="%.6f")


def plot_flat(df: pd.DataFrame, path: str, title: str) -> None:
    """Horizontal bar chart of self% per symbol, largest on top."""
    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise RuntimeError("--plot needs matplotlib") from e

    shown = df.iloc[::-1]
    ax = shown.plot.barh(
        x="symbol",
        y="percent",
        legend=False,
        color="#7ed3ab",
        figsize=(8.0, max(3.0, 0.3 * len(shown) + 1.0)),
    )
    if ax.containers:
        ax.bar_label(ax.containers[0], labels=[f"{v:.1f}%" for v in shown["percent"]], padding=2)
    ax.set_xlabel("self samples (%)")
    ax.set_ylabel("")
    ax.set_title(title)

    fig = ax.get_figure()
    fig.tight_layout()
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    fig.savefig(path, dpi=150)
    plt.close(fig)
