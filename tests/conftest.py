"""Shared fixtures: synthetic stereo datasets, a fake clock and a fake tracker."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import cv2
import numpy as np
import pytest

from stereo_replay.core.stereo.calib import CalibrationBundle, CameraCalibration

ROWS, COLS = 48, 64


class FakeClock:
    def __init__(self, start: float = 100.0):
        self.t = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.t

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.t += seconds


class FakeSink:
    """Advances the fake clock by a scripted latency on every track() call."""

    def __init__(self, clock: FakeClock | None = None, latencies: Sequence[float] = ()):
        self.clock = clock
        self.latencies = list(latencies)
        self.calls: List[tuple] = []          # (t_s, start_time, left_shape, right_shape)
        self.shutdown_calls = 0
        self.exported: List[str] = []

    def track(self, left, right, t_s):
        start = self.clock.now() if self.clock is not None else None
        self.calls.append((t_s, start, left.shape, right.shape))
        if self.clock is not None and self.latencies:
            self.clock.t += self.latencies[len(self.calls) - 1]
        return None

    def shutdown(self):
        self.shutdown_calls += 1

    def export_trajectory(self, path):
        self.exported.append(path)


def K_from_intrinsics(fu: float, fv: float, cu: float, cv: float) -> np.ndarray:
    return np.array([[fu, 0.0, cu],
                     [0.0, fv, cv],
                     [0.0, 0.0, 1.0]], dtype=np.float64)


def matrix_yaml(key: str, m: np.ndarray) -> str:
    m = np.atleast_2d(np.asarray(m, dtype=np.float64))
    data = ", ".join(repr(float(v)) for v in m.ravel())
    return (f"{key}: !!opencv-matrix\n"
            f"   rows: {m.shape[0]}\n"
            f"   cols: {m.shape[1]}\n"
            f"   dt: d\n"
            f"   data: [ {data} ]\n")


def write_settings(path: Path, bundle: CalibrationBundle) -> None:
    # cv2.FileStorage refuses "." in key names on write, so the OpenCV YAML is written as text
    out = ["%YAML:1.0\n---\n"]
    for side, cam in (("LEFT", bundle.left), ("RIGHT", bundle.right)):
        out.append(f"{side}.height: {int(cam.rows)}\n")
        out.append(f"{side}.width: {int(cam.cols)}\n")
        out.append(matrix_yaml(f"{side}.D", np.asarray(cam.D).reshape(1, -1)))
        out.append(matrix_yaml(f"{side}.K", cam.K))
        out.append(matrix_yaml(f"{side}.R", cam.R))
        out.append(matrix_yaml(f"{side}.P", cam.P))
    path.write_text("".join(out))


def identity_camera(rows: int = ROWS, cols: int = COLS) -> CameraCalibration:
    K = K_from_intrinsics(50.0, 50.0, cols / 2.0, rows / 2.0)
    P = np.hstack([K, np.zeros((3, 1))])
    return CameraCalibration(K=K, D=np.zeros(5), R=np.eye(3), P=P, rows=rows, cols=cols)


def write_dataset(root: Path, tokens: Sequence[str], missing: Sequence[str] = (),
                  shape=(ROWS, COLS)) -> tuple[Path, Path, Path]:
    left_dir = root / "cam0"
    right_dir = root / "cam1"
    left_dir.mkdir(parents=True, exist_ok=True)
    right_dir.mkdir(parents=True, exist_ok=True)
    rng = np.random.default_rng(0)
    for tok in tokens:
        if tok in missing:
            continue
        img = rng.integers(0, 255, size=shape, dtype=np.uint8)
        cv2.imwrite(str(left_dir / f"{tok}.png"), img)
        cv2.imwrite(str(right_dir / f"{tok}.png"), img)
    times = root / "times.txt"
    times.write_text("".join(f"{tok}\n" for tok in tokens))
    return left_dir, right_dir, times


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def bundle() -> CalibrationBundle:
    return CalibrationBundle(left=identity_camera(), right=identity_camera())


@pytest.fixture
def settings_file(tmp_path, bundle) -> Path:
    path = tmp_path / "settings.yaml"
    write_settings(path, bundle)
    return path
