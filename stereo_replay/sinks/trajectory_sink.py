'''
Tracking sinks.

The real tracker lives outside this package and is loaded through
load_sink_factory("package.module:factory"). TrajectoryRecorderSink is the
in-process default: it keeps one pose per tracked frame and writes them in
TUM format. Without an estimator every pose is the identity.
'''
from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

from stereo_replay.types import ITrackingSink

logger = logging.getLogger(__name__)

PoseEstimator = Callable[[np.ndarray, np.ndarray, float], Optional[np.ndarray]]
SinkFactory = Callable[[str, str], ITrackingSink]


def rotmat_to_quat(R: np.ndarray) -> np.ndarray:
    """(3,3) rotation -> [qx, qy, qz, qw] with qw >= 0."""
    q = Rotation.from_matrix(np.asarray(R, dtype=np.float64)).as_quat()
    return -q if q[3] < 0 else q


class TrajectoryRecorderSink:
    def __init__(self, estimator: Optional[PoseEstimator] = None):
        self.estimator = estimator
        self.poses: List[Tuple[float, np.ndarray]] = []   # (t_s, T_wc 4x4)
        self._shut_down = False

    def track(self, left: np.ndarray, right: np.ndarray, t_s: float) -> np.ndarray:
        if self._shut_down:
            raise RuntimeError("track() called after shutdown()")
        T_wc = None
        if self.estimator is not None:
            T_wc = self.estimator(left, right, t_s)
        if T_wc is None:
            T_wc = self.poses[-1][1] if self.poses else np.eye(4)
        T_wc = np.asarray(T_wc, dtype=np.float64).reshape(4, 4)
        self.poses.append((t_s, T_wc))
        return T_wc

    def shutdown(self) -> None:
        if not self._shut_down:
            logger.debug("Recorder sink shut down after %d frames", len(self.poses))
        self._shut_down = True

    def export_trajectory(self, path: str) -> None:
        lines = []
        for t, T in self.poses:
            q = rotmat_to_quat(T[:3, :3])
            x, y, z = T[:3, 3]
            lines.append(f"{t:.6f} {x:.7f} {y:.7f} {z:.7f} "
                         f"{q[0]:.7f} {q[1]:.7f} {q[2]:.7f} {q[3]:.7f}\n")
        with Path(path).open("w") as f:
            f.writelines(lines)
        logger.info("Trajectory saved to %s (%d poses)", path, len(lines))


def default_sink_factory(vocabulary_path: str, settings_path: str) -> ITrackingSink:
    # vocabulary/settings only matter to a real tracker
    return TrajectoryRecorderSink()


def load_sink_factory(target: str) -> SinkFactory:
    """Resolves "package.module:attr" to a callable (vocabulary, settings) -> sink."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"sink must look like 'module:factory', got {target!r}")
    module = importlib.import_module(module_name)
    factory = getattr(module, attr)
    if not callable(factory):
        raise TypeError(f"{target} is not callable")
    return factory
