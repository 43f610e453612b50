# stereo_replay/core/stereo/calib.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List
import numpy as np


@dataclass(frozen=True)
class CameraCalibration:
    K: np.ndarray      # (3,3) intrinsics
    D: np.ndarray      # distortion coefficients
    R: np.ndarray      # (3,3) rectification rotation
    P: np.ndarray      # (3,4) rectified projection
    rows: int
    cols: int

    @property
    def P_rect(self) -> np.ndarray:
        return self.P[:3, :3]

    @property
    def image_size(self) -> tuple[int, int]:
        """(w,h), the order OpenCV expects."""
        return self.cols, self.rows

    def missing_fields(self) -> List[str]:
        missing = []
        for name in ("K", "P", "R", "D"):
            m = getattr(self, name)
            if m is None or np.asarray(m).size == 0:
                missing.append(name)
        if not self.rows:
            missing.append("height")
        if not self.cols:
            missing.append("width")
        return missing


@dataclass(frozen=True)
class CalibrationBundle:
    left: CameraCalibration
    right: CameraCalibration

    def missing_fields(self) -> List[str]:
        return ([f"LEFT.{n}" for n in self.left.missing_fields()]
                + [f"RIGHT.{n}" for n in self.right.missing_fields()])
