from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import numpy as np
import matplotlib.pyplot as plt


@dataclass(frozen=True)
class TimingStats:
    count: int
    median: float
    mean: float
    total: float


def summarize(durations: Sequence[float]) -> TimingStats:
    """
    Median and mean of per-frame tracking times.

    Median is the element at index n // 2 of a sorted copy, even when n is
    even. The input is not reordered.
    """
    if len(durations) == 0:
        raise ValueError("no tracking times recorded")
    ordered = sorted(durations)
    n = len(ordered)
    total = float(sum(ordered))
    return TimingStats(count=n, median=float(ordered[n // 2]), mean=total / n, total=total)


def format_stats(stats: TimingStats) -> str:
    return (f"median tracking time: {stats.median:g}\n"
            f"mean tracking time: {stats.mean:g}")


def save_timing_plot(durations: Sequence[float], path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    d_ms = np.asarray(durations, dtype=np.float64) * 1e3
    stats = summarize(durations)

    fig = plt.figure()
    plt.plot(np.arange(len(d_ms)), d_ms, color="tab:blue", label="tracking time")
    plt.axhline(stats.median * 1e3, color="tab:orange", linestyle="--", label="median")
    plt.title(f"Tracking time per frame (n = {stats.count})")
    plt.xlabel("frame")
    plt.ylabel("time (ms)")
    plt.legend()
    plt.savefig(path, dpi=200, bbox_inches="tight")
    plt.close(fig)
    return path
