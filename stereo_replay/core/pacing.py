# stereo_replay/core/pacing.py
# Replay cadence: how long to wait after each frame so playback follows the recorded timestamps
from __future__ import annotations

import time
from typing import Protocol, Sequence


class Clock(Protocol):
    def now(self) -> float: ...
    def sleep(self, seconds: float) -> None: ...


class MonotonicClock:
    def now(self) -> float:
        return time.perf_counter()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


def target_interval(timestamps: Sequence[float], i: int) -> float:
    """
    Wall-clock budget for frame i.

    The final frame has no successor, so it reuses the previous gap. This is
    an approximation, not a recorded interval. A single frame gets 0.
    """
    n = len(timestamps)
    if i < n - 1:
        return timestamps[i + 1] - timestamps[i]
    if i > 0:
        return timestamps[i] - timestamps[i - 1]
    return 0.0


def pace(clock: Clock, elapsed: float, interval: float) -> float:
    # each interval stands alone: no catch-up for accumulated drift, no frame skipping
    if elapsed < interval:
        wait = interval - elapsed
        clock.sleep(wait)
        return wait
    return 0.0
