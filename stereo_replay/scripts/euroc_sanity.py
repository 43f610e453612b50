'''
-loads the timestamp manifest the same way the replay driver does
-prints frame count, time span and estimated frame rate
-prints inter-frame dt stats (this is the cadence the replay will follow)
-tells you about repeated or decreasing timestamps
'''

from __future__ import annotations

import argparse
from typing import List, Sequence

import numpy as np

from stereo_replay.providers.euroc_provider import load_images, validate_index


def summarize_dts(name: str, dts_s: Sequence[float]) -> str:
    if len(dts_s) == 0:
        return f"{name}: no dt samples"
    arr_s = np.asarray(dts_s, dtype=np.float64)
    return (
        f"{name}: n={len(arr_s)}  "
        f"mean={arr_s.mean():.6f}s  std={arr_s.std():.6f}s  "
        f"min={arr_s.min():.6f}s  p50={np.percentile(arr_s, 50):.6f}s  "
        f"p95={np.percentile(arr_s, 95):.6f}s  max={arr_s.max():.6f}s"
    )


def manifest_report(timestamps: Sequence[float]) -> List[str]:
    ts = np.asarray(timestamps, dtype=np.float64)
    lines = [f"Frames: {len(ts)}"]
    if len(ts) == 0:
        return lines

    dts = np.diff(ts)
    span_s = float(ts[-1] - ts[0])
    lines.append(f"Time span: {span_s:.3f}s  (t_first={ts[0]:.9f}, t_last={ts[-1]:.9f})")
    if span_s > 0:
        lines.append(f"Approx rate over span: {(len(ts) - 1) / span_s:.2f} Hz")
    lines.append(summarize_dts("Frame dt", dts))

    repeats = len(ts) - np.unique(ts).size
    if repeats > 0:
        lines.append(f"WARNING: repeated timestamps found (repeats={repeats}).")
    decreases = int(np.sum(dts < 0))
    if decreases > 0:
        lines.append(f"WARNING: timestamps decrease {decreases} time(s); replay keeps file order.")
    return lines


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--left", required=True, type=str, help="left image folder")
    ap.add_argument("--right", required=True, type=str, help="right image folder")
    ap.add_argument("--times", required=True, type=str, help="timestamp file (ns per line)")
    args = ap.parse_args()

    index = load_images(args.left, args.right, args.times)
    validate_index(index)

    print("\n=== manifest sanity ===")
    print(f"Manifest: {args.times}")
    for line in manifest_report(index.timestamps):
        print(line)
    print("\nOK: manifest loaded and stats printed.")


if __name__ == "__main__":
    main()
