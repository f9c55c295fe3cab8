from __future__ import annotations
import asyncio
import logging
import math
import mimetypes
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union
from ..errors import LoadError, LoadTimeout, UnsupportedSourceError
from ..types import MediaBlob
from .media import CaptureHandle, MediaEvent, MediaHandle, ReadyState, wait_for_event
from .object_urls import ObjectUrlStore

log = logging.getLogger(__name__)

Source = Union[MediaHandle, MediaBlob]

class LoadState(str, Enum):
    UNSTARTED = "unstarted"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"

@dataclass
class LoadedSource:
    handle: MediaHandle
    url: Optional[str] = None       # object URL the loader allocated, if any
    owned: bool = False             # loader built the handle and must close it
    state: LoadState = LoadState.UNSTARTED
    released: bool = False

def blob_media_type(blob: MediaBlob) -> str:
    t = (blob.type or "").strip().lower()
    if not t and blob.name:
        t = (mimetypes.guess_type(blob.name)[0] or "").lower()
    return t

class SourceLoader:
    """Turn a handle or a video blob into a fully buffered, seek-ready handle."""

    def __init__(self, url_store: Optional[ObjectUrlStore] = None,
                 handle_factory: Callable[[], MediaHandle] = CaptureHandle,
                 load_timeout: float = 30.0):
        self.url_store = url_store if url_store is not None else ObjectUrlStore()
        self.handle_factory = handle_factory
        self.load_timeout = float(load_timeout)

    async def load(self, source: Source) -> LoadedSource:
        if isinstance(source, MediaBlob):
            return await self._load_blob(source)
        if isinstance(source, MediaHandle):
            loaded = LoadedSource(handle=source)
            await self.wait_until_ready(source, loaded)
            return loaded
        raise UnsupportedSourceError(f"Unsupported video source: {type(source).__name__}")

    async def _load_blob(self, blob: MediaBlob) -> LoadedSource:
        mtype = blob_media_type(blob)
        if not mtype.startswith("video/"):
            raise UnsupportedSourceError(f"Not a video blob: type={blob.type!r} name={blob.name!r}")
        url = self.url_store.create_object_url(blob)
        try:
            handle = self.handle_factory()
            loaded = LoadedSource(handle=handle, url=url, owned=True)
            handle.muted = True
            handle.preload = "auto"
            handle.src = url
        except BaseException:
            self.url_store.revoke_object_url(url)
            raise
        try:
            await self.wait_until_ready(handle, loaded)
        except BaseException:
            self.release(loaded)
            raise
        return loaded

    async def wait_until_ready(self, handle: MediaHandle, loaded: Optional[LoadedSource] = None) -> None:
        """Resolve once `handle` can play through; raises LoadError / LoadTimeout."""
        loaded = loaded or LoadedSource(handle=handle)
        if handle.ready_state >= ReadyState.HAVE_ENOUGH_DATA:
            self._check_duration(handle, loaded)
            return
        loaded.state = LoadState.LOADING
        log.debug("loading %s", handle.src)
        try:
            _, ok, args = await wait_for_event(
                handle, [MediaEvent.CAN_PLAY_THROUGH], [MediaEvent.ERROR],
                timeout=self.load_timeout, trigger=handle.load)
        except asyncio.TimeoutError:
            loaded.state = LoadState.FAILED
            raise LoadTimeout(f"Timed out loading video after {self.load_timeout:g}s", src=handle.src) from None
        if not ok:
            loaded.state = LoadState.FAILED
            detail = f": {args[0]}" if args and args[0] is not None else ""
            raise LoadError(f"Failed to load video{detail}", src=handle.src)
        self._check_duration(handle, loaded)
        log.debug("ready %s (%.2fs, %dx%d)", handle.src, handle.duration, handle.width, handle.height)

    @staticmethod
    def _check_duration(handle: MediaHandle, loaded: LoadedSource) -> None:
        # +inf (live) is allowed; NaN or non-positive means nothing to sample
        dur = float(handle.duration)
        if math.isnan(dur) or dur <= 0:
            loaded.state = LoadState.FAILED
            raise LoadError("Video has no usable duration", src=handle.src)
        loaded.state = LoadState.READY

    def release(self, loaded: LoadedSource) -> None:
        """Release whatever the loader allocated for `loaded`. Safe to call twice."""
        if loaded.released:
            return
        loaded.released = True
        try:
            if loaded.owned:
                loaded.handle.close()
        finally:
            if loaded.url is not None:
                self.url_store.revoke_object_url(loaded.url)
