from __future__ import annotations
import asyncio
import math
import numpy as np
from ..errors import FrameExtractionTimeout, SeekFailed
from ..types import FrameSample
from .media import MediaEvent, MediaHandle, wait_for_event

class FrameExtractor:
    """One seek-and-capture cycle per call; nothing is kept between calls."""
    def __init__(self, seek_timeout: float = 5.0):
        self.seek_timeout = float(seek_timeout)

    def clamp(self, handle: MediaHandle, t: float) -> float:
        dur = float(handle.duration)
        t = max(0.0, float(t))
        if math.isfinite(dur):
            t = min(t, dur)
        return t

    async def extract(self, handle: MediaHandle, timestamp: float) -> FrameSample:
        t = self.clamp(handle, timestamp)
        try:
            _, ok, args = await wait_for_event(
                handle, [MediaEvent.SEEKED], [MediaEvent.ERROR],
                timeout=self.seek_timeout, trigger=lambda: handle.seek(t))
        except asyncio.TimeoutError:
            raise FrameExtractionTimeout("Frame extraction timeout", t) from None
        if not ok:
            detail = f": {args[0]}" if args and args[0] is not None else ""
            raise SeekFailed(f"Seek failed{detail}", t)

        w, h = int(handle.width), int(handle.height)
        target = np.zeros((h, w, 4), dtype=np.uint8)
        handle.draw_frame(target)
        return FrameSample(timestamp=t, pixels=target, width=w, height=h)
