from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import numpy as np
import cv2

from stereo_replay.types import (
    DatasetError,
    FrameIndex,
    FrameLoadError,
    RawStereoEvent,
)

logger = logging.getLogger(__name__)


def load_images(
    left_dir: str | Path,
    right_dir: str | Path,
    times_path: str | Path,
) -> FrameIndex:
    """
    Build the frame index from a timestamp manifest.

    Each non-blank line starts with a nanosecond timestamp token. The token is
    reused verbatim as the image stem, "<dir>/<token>.png", for both cameras;
    the directory string is kept exactly as given. Image files are not checked
    here; a missing file surfaces at load time.
    """
    left_dir = str(left_dir)
    right_dir = str(right_dir)

    lefts: List[str] = []
    rights: List[str] = []
    times: List[float] = []
    last_t: Optional[float] = None

    try:
        f = Path(times_path).open("r", encoding="utf-8")
    except OSError as e:
        raise DatasetError(f"Cannot read timestamp file {times_path}: {e}") from e

    with f:
        lineno = 0
        try:
            for lineno, line in enumerate(f, start=1):
                tokens = line.split()
                if not tokens:
                    continue
                token = tokens[0]
                try:
                    t = float(token) / 1e9
                except ValueError:
                    raise DatasetError(
                        f"{times_path}:{lineno}: bad timestamp token {token!r}"
                    ) from None

                if last_t is not None and t < last_t:
                    # kept in manifest order, never re-sorted
                    logger.warning("%s:%d: timestamp decreased (%.9f < %.9f)",
                                   times_path, lineno, t, last_t)
                last_t = t

                lefts.append(f"{left_dir}/{token}.png")
                rights.append(f"{right_dir}/{token}.png")
                times.append(t)
        except UnicodeDecodeError as e:
            raise DatasetError(
                f"{times_path}:{lineno + 1}: timestamp file is not UTF-8 text ({e})"
            ) from e

    logger.debug("Loaded %d manifest entries from %s", len(times), times_path)
    return FrameIndex(tuple(lefts), tuple(rights), tuple(times))


def validate_index(index: FrameIndex) -> None:
    if not index.left_paths or not index.right_paths:
        raise DatasetError("No images in provided path.")
    if len(index.left_paths) != len(index.right_paths):
        raise DatasetError("Different number of left and right images.")


class EuRoCStereoProvider:
    def __init__(self, index: FrameIndex, read_flag: int = cv2.IMREAD_UNCHANGED):
        validate_index(index)
        self.index = index
        self.read_flag = read_flag
        self._entries = tuple(index)
        self._i = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RawStereoEvent]:
        while self.has_next():
            yield self.next_event()

    def timestamps(self) -> Tuple[float, ...]:
        return self.index.timestamps

    def has_next(self) -> bool:
        return self._i < len(self._entries)

    def next_event(self) -> RawStereoEvent:
        if not self.has_next():
            raise StopIteration

        i = self._i
        entry = self._entries[i]

        left = self._read(entry.left_path)
        try:
            right = self._read(entry.right_path)
        except FrameLoadError:
            del left
            raise

        self._i += 1
        return RawStereoEvent(index=i, t_s=entry.t_s, left=left, right=right)

    # ---------- helpers ----------

    def _read(self, path: str) -> np.ndarray:
        img = cv2.imread(path, self.read_flag)
        if img is None or img.size == 0:
            raise FrameLoadError(path)
        return img
