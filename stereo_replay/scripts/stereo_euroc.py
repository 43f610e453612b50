'''
Replays a EuRoC-style stereo sequence into a tracker at the recorded rate.

    stereo-euroc path_to_vocabulary path_to_settings path_to_left_folder \
                 path_to_right_folder path_to_times_file

Exit status: 0 on success, 1 for usage / dataset / image load errors,
-1 when the settings file is unreadable or calibration is incomplete.
'''
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from stereo_replay.types import ConfigError, DatasetError, FrameLoadError
from stereo_replay.providers.euroc_provider import EuRoCStereoProvider, load_images, validate_index
from stereo_replay.core.stereo.settings import load_calibration
from stereo_replay.core.stereo.rectify import StereoRectifier
from stereo_replay.core.pacing import Clock
from stereo_replay.core.timing import format_stats, save_timing_plot, summarize
from stereo_replay.frontend.replay import ReplayParams, StereoReplayDriver
from stereo_replay.sinks.trajectory_sink import SinkFactory, default_sink_factory, load_sink_factory

USAGE = ("Usage: stereo-euroc path_to_vocabulary path_to_settings "
         "path_to_left_folder path_to_right_folder path_to_times_file")

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_DATASET = 1
EXIT_CONFIG = -1


class _Parser(argparse.ArgumentParser):
    def error(self, message: str):
        print(f"\n{USAGE}\n{self.prog}: error: {message}", file=sys.stderr)
        self.exit(EXIT_USAGE)


def build_parser() -> _Parser:
    ap = _Parser(prog="stereo-euroc", description="Stereo dataset replay driver")
    ap.add_argument("vocabulary", help="tracker vocabulary file")
    ap.add_argument("settings", help="OpenCV FileStorage settings with LEFT.*/RIGHT.* calibration")
    ap.add_argument("left_dir", help="left camera image folder")
    ap.add_argument("right_dir", help="right camera image folder")
    ap.add_argument("times", help="timestamp file, one nanosecond timestamp per line")
    ap.add_argument("--sink", default=None, help="tracker factory as 'module:callable'")
    ap.add_argument("--trajectory", default=ReplayParams.trajectory_path,
                    help="trajectory output file (default: %(default)s)")
    ap.add_argument("--timing-plot", default=None, help="save per-frame tracking time plot here")
    ap.add_argument("--no-pacing", action="store_true", help="do not sleep between frames")
    ap.add_argument("--log-level", default="WARNING", help="console log level (default: %(default)s)")
    return ap


def configure_logging(level: str = "WARNING") -> logging.Logger:
    logger = logging.getLogger("stereo_replay")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    for h in list(logger.handlers):
        logger.removeHandler(h)

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
    logger.addHandler(ch)
    return logger


def main(
    argv: Optional[Sequence[str]] = None,
    sink_factory: Optional[SinkFactory] = None,
    clock: Optional[Clock] = None,
) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    logger = configure_logging(args.log_level)

    if sink_factory is None:
        if args.sink is not None:
            try:
                sink_factory = load_sink_factory(args.sink)
            except (ImportError, AttributeError, ValueError, TypeError) as e:
                ap.error(f"cannot load sink {args.sink!r}: {e}")
        else:
            sink_factory = default_sink_factory

    params = ReplayParams(pacing=not args.no_pacing, trajectory_path=args.trajectory)

    # ---- dataset ----
    try:
        index = load_images(args.left_dir, args.right_dir, args.times)
        validate_index(index)
    except DatasetError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_DATASET

    # ---- calibration + rectification maps ----
    try:
        bundle = load_calibration(args.settings)
        rectifier = StereoRectifier.from_calib(bundle)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIG

    n_images = len(index)
    sink = sink_factory(args.vocabulary, args.settings)
    provider = EuRoCStereoProvider(index, read_flag=params.read_flag)
    driver = StereoReplayDriver(
        provider, rectifier, sink, clock=clock, params=params,
        on_frame=lambda i, dt: logger.debug("frame %d/%d tracked in %.4fs", i + 1, n_images, dt),
    )

    print("\n-------")
    print("Start processing sequence ...")
    print(f"Images in the sequence: {n_images}\n")

    # ---- run loop ----
    try:
        times_track = driver.run()
    except FrameLoadError as e:
        print(f"\n{e}", file=sys.stderr)
        return EXIT_DATASET

    # Stop all threads
    sink.shutdown()

    # Tracking time statistics
    stats = summarize(times_track)
    print("-------\n")
    print(format_stats(stats))

    if args.timing_plot:
        plot_path = save_timing_plot(times_track, args.timing_plot)
        print(f"Saved timing plot to {plot_path}")

    # Save camera trajectory
    try:
        sink.export_trajectory(params.trajectory_path)
    except OSError as e:
        print(f"ERROR: could not save trajectory to {params.trajectory_path}: {e}", file=sys.stderr)

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
