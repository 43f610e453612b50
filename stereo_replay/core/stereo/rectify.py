from __future__ import annotations
from dataclasses import dataclass
import logging
import numpy as np
import cv2

from stereo_replay.types import ConfigError
from .calib import CalibrationBundle, CameraCalibration

logger = logging.getLogger(__name__)


def build_rectify_map(cam: CameraCalibration) -> tuple[np.ndarray, np.ndarray]:
    """Per-pixel (map_x, map_y) float32 lookup tables of shape (rows, cols)."""
    missing = cam.missing_fields()
    if missing:
        raise ConfigError(f"Calibration parameters to rectify stereo are missing! ({', '.join(missing)})")
    return cv2.initUndistortRectifyMap(
        cam.K, cam.D, cam.R, cam.P_rect, cam.image_size, cv2.CV_32FC1
    )


@dataclass(frozen=True)
class StereoRectifier:
    map1_x: np.ndarray
    map1_y: np.ndarray
    map2_x: np.ndarray
    map2_y: np.ndarray
    # same policy on both sides keeps the epipolar lines aligned
    border_mode: int = cv2.BORDER_CONSTANT
    border_value: float = 0.0

    @staticmethod
    def from_calib(bundle: CalibrationBundle) -> "StereoRectifier":
        missing = bundle.missing_fields()
        if missing:
            raise ConfigError(f"Calibration parameters to rectify stereo are missing! ({', '.join(missing)})")

        # Rectification maps (compute once)
        map1_x, map1_y = build_rectify_map(bundle.left)
        map2_x, map2_y = build_rectify_map(bundle.right)

        logger.debug("Rectification maps built: left %s, right %s",
                     map1_x.shape, map2_x.shape)
        return StereoRectifier(map1_x, map1_y, map2_x, map2_y)

    def _remap(self, img: np.ndarray, mx: np.ndarray, my: np.ndarray) -> np.ndarray:
        return cv2.remap(img, mx, my, interpolation=cv2.INTER_LINEAR,
                         borderMode=self.border_mode, borderValue=self.border_value)

    def rectify_left(self, img: np.ndarray) -> np.ndarray:
        return self._remap(img, self.map1_x, self.map1_y)

    def rectify_right(self, img: np.ndarray) -> np.ndarray:
        return self._remap(img, self.map2_x, self.map2_y)

    def rectify_pair(self, img0: np.ndarray, img1: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        return self.rectify_left(img0), self.rectify_right(img1)
