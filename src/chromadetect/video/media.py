"""
Media host layer: playback handles that load, seek and draw frames, announcing
progress through events (canplaythrough / seeked / error), and the race helper
every suspension point is built on.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple, runtime_checkable

import cv2
import numpy as np

from ..errors import LoadError, LoadTimeout

log = logging.getLogger(__name__)

Listener = Callable[..., Any]


class MediaEvent(str, Enum):
    LOADED_METADATA = "loadedmetadata"
    CAN_PLAY_THROUGH = "canplaythrough"
    SEEKED = "seeked"
    ERROR = "error"


class ReadyState(IntEnum):
    HAVE_NOTHING = 0
    HAVE_METADATA = 1
    HAVE_CURRENT_DATA = 2
    HAVE_FUTURE_DATA = 3
    HAVE_ENOUGH_DATA = 4


@runtime_checkable
class MediaHandle(Protocol):
    """What the loader and extractor need from a playback handle."""

    src: Optional[str]
    muted: bool
    preload: str
    duration: float
    width: int
    height: int
    ready_state: ReadyState
    current_time: float

    def add_listener(self, event: str, callback: Listener) -> None: ...

    def remove_listener(self, event: str, callback: Listener) -> None: ...

    def load(self) -> None: ...

    def seek(self, t: float) -> None: ...

    def draw_frame(self, target: np.ndarray) -> None: ...

    def close(self) -> None: ...


class MediaEmitter:
    """Listener registry. Callbacks run on the thread that calls emit()."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def add_listener(self, event: str, callback: Listener) -> None:
        self._listeners.setdefault(MediaEvent(event).value, []).append(callback)

    def remove_listener(self, event: str, callback: Listener) -> None:
        cbs = self._listeners.get(MediaEvent(event).value, [])
        if callback in cbs:
            cbs.remove(callback)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(MediaEvent(event).value, []))

    def emit(self, event: str, *args: Any) -> None:
        # copy: listeners may remove themselves while we iterate
        for cb in list(self._listeners.get(MediaEvent(event).value, [])):
            cb(*args)


async def wait_for_event(
    emitter: MediaHandle,
    resolve_on: Iterable[str],
    reject_on: Iterable[str] = (),
    timeout: Optional[float] = None,
    trigger: Optional[Callable[[], Any]] = None,
) -> Tuple[str, bool, tuple]:
    """Wait for the first of `resolve_on` / `reject_on` events, or the timeout.

    Returns (event, ok, args); ok is False for a `reject_on` event. Raises
    asyncio.TimeoutError when nothing fires in time. Listeners are registered
    before `trigger` runs and removed on every exit path.
    """
    loop = asyncio.get_running_loop()
    fut: asyncio.Future = loop.create_future()
    registered: List[Tuple[str, Listener]] = []

    def _make(event: str, ok: bool) -> Listener:
        def _on_event(*args: Any) -> None:
            if not fut.done():
                fut.set_result((event, ok, args))
        return _on_event

    for ev in resolve_on:
        cb = _make(MediaEvent(ev).value, True)
        emitter.add_listener(ev, cb)
        registered.append((ev, cb))
    for ev in reject_on:
        cb = _make(MediaEvent(ev).value, False)
        emitter.add_listener(ev, cb)
        registered.append((ev, cb))

    try:
        if trigger is not None:
            trigger()
        return await asyncio.wait_for(fut, timeout)
    finally:
        for ev, cb in registered:
            emitter.remove_listener(ev, cb)


def _duration_seconds(cap: cv2.VideoCapture) -> float:
    fps = float(cap.get(cv2.CAP_PROP_FPS) or 0.0)
    frames = float(cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0.0)
    if fps <= 1e-6:
        return 0.0
    return frames / fps


class CaptureHandle(MediaEmitter):
    """OpenCV-backed media handle.

    Decoder work runs on a private single-worker pool, so at most one open/seek
    is in flight; completion events are emitted on the event loop thread.
    """

    def __init__(self, src: Optional[str] = None) -> None:
        super().__init__()
        self.src = src
        self.muted = False
        self.preload = "metadata"
        self.duration = float("nan")
        self.width = 0
        self.height = 0
        self.ready_state = ReadyState.HAVE_NOTHING
        self.current_time = 0.0
        self._cap: Optional[cv2.VideoCapture] = None
        self._frame: Optional[np.ndarray] = None  # BGR, last decoded
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="capture")
        self._loading = False
        self._seek_gen = 0
        self._closed = False

    @classmethod
    async def open(cls, path: str, timeout: float = 30.0) -> "CaptureHandle":
        """Open and fully buffer `path`, for callers that own their handle."""
        h = cls(str(path))
        h.preload = "auto"
        try:
            _, ok, args = await wait_for_event(
                h, [MediaEvent.CAN_PLAY_THROUGH], [MediaEvent.ERROR], timeout=timeout, trigger=h.load)
        except asyncio.TimeoutError:
            h.close()
            raise LoadTimeout(f"Timed out loading video after {timeout:g}s", src=h.src) from None
        if not ok:
            h.close()
            raise LoadError(f"Failed to load video: {args[0] if args else path}", src=h.src)
        return h

    # --- loading -----------------------------------------------------------
    def load(self) -> None:
        if self._loading or self.ready_state >= ReadyState.HAVE_METADATA:
            return
        if not self.src:
            raise ValueError("CaptureHandle.load() needs src")
        self._loading = True
        fut = asyncio.get_running_loop().run_in_executor(self._executor, self._open_blocking)
        fut.add_done_callback(self._on_opened)

    def _open_blocking(self) -> Tuple[cv2.VideoCapture, float, int, int, Optional[np.ndarray]]:
        cap = cv2.VideoCapture(str(self.src))
        if not cap.isOpened():
            cap.release()
            raise IOError(f"Cannot open video: {self.src}")
        dur = _duration_seconds(cap)
        w = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        h = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        first = None
        if self.preload == "auto":
            # decode one frame so seeks hit real data, not just the container header
            ok, first = cap.read()
            if not ok:
                cap.release()
                raise IOError(f"Cannot decode video: {self.src}")
        return cap, dur, w, h, first

    def _on_opened(self, fut: "asyncio.Future") -> None:
        self._loading = False
        if fut.cancelled():
            return
        err = fut.exception()
        if err is not None:
            log.debug("load failed for %s: %s", self.src, err)
            self.emit(MediaEvent.ERROR, err)
            return
        cap, dur, w, h, first = fut.result()
        if self._closed:
            # load outlived the handle (e.g. timed out); nobody will release it otherwise
            cap.release()
            return
        self._cap = cap
        self.duration, self.width, self.height = dur, w, h
        self.ready_state = ReadyState.HAVE_METADATA
        self.emit(MediaEvent.LOADED_METADATA)
        if first is not None:
            self._frame = first
            self.ready_state = ReadyState.HAVE_ENOUGH_DATA
            self.emit(MediaEvent.CAN_PLAY_THROUGH)

    # --- seeking -----------------------------------------------------------
    def seek(self, t: float) -> None:
        """Queue a seek; a later seek supersedes any still in flight."""
        self.current_time = float(t)
        self._seek_gen += 1
        fut = asyncio.get_running_loop().run_in_executor(self._executor, self._seek_blocking, float(t))
        fut.add_done_callback(functools.partial(self._on_seeked, self._seek_gen))

    def _seek_blocking(self, t: float) -> np.ndarray:
        if self._cap is None:
            raise IOError("seek on an unloaded handle")
        self._cap.set(cv2.CAP_PROP_POS_MSEC, t * 1000.0)
        ok, f = self._cap.read()
        if not ok or f is None:
            raise IOError(f"no frame at {t:.3f}s")
        return f

    def _on_seeked(self, gen: int, fut: "asyncio.Future") -> None:
        if fut.cancelled():
            return
        err = fut.exception()
        if self._closed or gen != self._seek_gen:
            log.debug("dropping stale seek result for %s", self.src)
            return
        if err is not None:
            self.emit(MediaEvent.ERROR, err)
            return
        self._frame = fut.result()
        self.emit(MediaEvent.SEEKED)

    # --- drawing -----------------------------------------------------------
    def draw_frame(self, target: np.ndarray) -> None:
        """Draw the current frame into an RGBA uint8 target of shape [H, W, 4]."""
        if self._frame is None:
            raise RuntimeError("no frame decoded yet")
        rgba = cv2.cvtColor(self._frame, cv2.COLOR_BGR2RGBA)
        th, tw = target.shape[:2]
        if rgba.shape[0] != th or rgba.shape[1] != tw:
            rgba = cv2.resize(rgba, (tw, th), interpolation=cv2.INTER_AREA)
        target[...] = rgba

    def close(self) -> None:
        self._closed = True
        cap, self._cap = self._cap, None
        self._frame = None
        if cap is not None:
            # release on the worker so an in-flight read finishes first
            self._executor.submit(cap.release)
        self._executor.shutdown(wait=False)
