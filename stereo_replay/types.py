from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Protocol, Tuple
import numpy as np


# -----------------------------
# Dataset index
# -----------------------------

@dataclass(frozen=True)
class FrameIndexEntry:
    left_path: str
    right_path: str
    t_s: float         # capture time in seconds


@dataclass(frozen=True)
class FrameIndex:
    """Aligned left/right image paths and timestamps, in manifest order."""
    left_paths: Tuple[str, ...]      # "<dir>/<token>.png", exactly as built
    right_paths: Tuple[str, ...]
    timestamps: Tuple[float, ...]

    def __len__(self) -> int:
        return len(self.timestamps)

    def __iter__(self) -> Iterator[FrameIndexEntry]:
        for lp, rp, t in zip(self.left_paths, self.right_paths, self.timestamps):
            yield FrameIndexEntry(lp, rp, t)


# -----------------------------
# Raw events from dataset/provider
# -----------------------------

@dataclass(frozen=True)
class RawStereoEvent:
    index: int
    t_s: float
    left: np.ndarray   # HxW or HxWxC, as stored on disk
    right: np.ndarray


# -----------------------------
# Collaborator interfaces
# -----------------------------

class IStereoProvider(Protocol):
    """Yields RawStereoEvent in manifest order."""
    def __len__(self) -> int: ...
    def has_next(self) -> bool: ...
    def next_event(self) -> RawStereoEvent: ...
    def timestamps(self) -> Tuple[float, ...]: ...


class ITrackingSink(Protocol):
    """External tracker fed with rectified stereo pairs."""
    def track(self, left: np.ndarray, right: np.ndarray, t_s: float) -> Any: ...
    def shutdown(self) -> None: ...
    def export_trajectory(self, path: str) -> None: ...


# -----------------------------
# Errors
# -----------------------------

class ReplayError(RuntimeError):
    pass


class DatasetError(ReplayError):
    """Manifest could not be read or produced an unusable index."""


class ConfigError(ReplayError):
    """Settings file unreadable or calibration incomplete."""


class FrameLoadError(ReplayError):
    def __init__(self, path: Path | str):
        self.path = str(path)
        super().__init__(f"Failed to load image at: {self.path}")

