# stereo_replay/frontend/replay.py
# This is the replay loop: load -> rectify -> track -> pace, one stereo pair at a time
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import cv2

from stereo_replay.types import IStereoProvider, ITrackingSink
from stereo_replay.core.pacing import Clock, MonotonicClock, pace, target_interval
from stereo_replay.core.stereo.rectify import StereoRectifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplayParams:
    pacing: bool = True                        # sleep to follow the recorded cadence
    read_flag: int = cv2.IMREAD_UNCHANGED      # no colour-depth conversion
    trajectory_path: str = "CameraTrajectory.txt"


class StereoReplayDriver:
    """
    Feeds a recorded stereo sequence to a tracker at the recorded cadence.

    Each frame is loaded, rectified and passed to ``sink.track``; the time
    spent inside the call is recorded, and the loop then sleeps for whatever
    is left of the gap to the next timestamp. Frames are never dropped when
    tracking runs slower than the recording.
    """

    def __init__(
        self,
        provider: IStereoProvider,
        rectifier: StereoRectifier,
        sink: ITrackingSink,
        clock: Optional[Clock] = None,
        params: ReplayParams = ReplayParams(),
        on_frame: Optional[Callable[[int, float], None]] = None,
    ):
        self.provider = provider
        self.rectifier = rectifier
        self.sink = sink
        self.clock = clock if clock is not None else MonotonicClock()
        self.params = params
        self.on_frame = on_frame

    def step(self) -> Optional[float]:
        """Processes the next frame and returns its tracking time, or None at the end."""
        if not self.provider.has_next():
            return None

        # FrameLoadError propagates from here; the sink never sees the frame
        ev = self.provider.next_event()
        left_r, right_r = self.rectifier.rectify_pair(ev.left, ev.right)

        t1 = self.clock.now()
        self.sink.track(left_r, right_r, ev.t_s)
        t2 = self.clock.now()
        ttrack = t2 - t1

        # Wait to load the next frame
        if self.params.pacing:
            T = target_interval(self.provider.timestamps(), ev.index)
            slept = pace(self.clock, ttrack, T)
            logger.debug("frame %d: t=%.6f track=%.4fs T=%.4fs sleep=%.4fs",
                         ev.index, ev.t_s, ttrack, T, slept)

        if self.on_frame is not None:
            self.on_frame(ev.index, ttrack)
        return ttrack

    def run(self) -> List[float]:
        times_track: List[float] = []
        while True:
            ttrack = self.step()
            if ttrack is None:
                break
            times_track.append(ttrack)
        return times_track
