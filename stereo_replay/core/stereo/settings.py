'''
Reads the stereo calibration out of an OpenCV FileStorage settings file
(the %YAML:1.0 / !!opencv-matrix format) into a CalibrationBundle.

Required keys per camera (LEFT / RIGHT): K, D, R, P, height, width.
'''

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import numpy as np
import cv2

from stereo_replay.types import ConfigError
from .calib import CalibrationBundle, CameraCalibration

logger = logging.getLogger(__name__)


def read_matrix(fs: cv2.FileStorage, key: str) -> Optional[np.ndarray]:
    node = fs.getNode(key)
    if node.empty() or node.isNone():
        return None
    m = node.mat()
    if m is None or m.size == 0:
        return None
    return m.astype(np.float64)


def read_int(fs: cv2.FileStorage, key: str) -> int:
    node = fs.getNode(key)
    if node.empty() or node.isNone():
        return 0
    return int(node.real())


def _read_camera(fs: cv2.FileStorage, side: str) -> CameraCalibration:
    return CameraCalibration(
        K=read_matrix(fs, f"{side}.K"),
        D=read_matrix(fs, f"{side}.D"),
        R=read_matrix(fs, f"{side}.R"),
        P=read_matrix(fs, f"{side}.P"),
        rows=read_int(fs, f"{side}.height"),
        cols=read_int(fs, f"{side}.width"),
    )


def load_calibration(settings_path: str | Path) -> CalibrationBundle:
    try:
        fs = cv2.FileStorage(str(settings_path), cv2.FILE_STORAGE_READ)
    except cv2.error as e:
        raise ConfigError(f"Wrong path to settings: {settings_path} ({e})") from e
    if not fs.isOpened():
        raise ConfigError(f"Wrong path to settings: {settings_path}")

    try:
        bundle = CalibrationBundle(
            left=_read_camera(fs, "LEFT"),
            right=_read_camera(fs, "RIGHT"),
        )
    finally:
        fs.release()

    missing = bundle.missing_fields()
    if missing:
        raise ConfigError(
            "Calibration parameters to rectify stereo are missing! "
            f"({', '.join(missing)})"
        )

    logger.info("Loaded stereo calibration from %s (left %dx%d, right %dx%d)",
                settings_path, bundle.left.cols, bundle.left.rows,
                bundle.right.cols, bundle.right.rows)
    return bundle

