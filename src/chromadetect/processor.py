from __future__ import annotations
import inspect
import logging
from typing import Any, Callable, Optional
from .engine.base import DetectionEngine
from .errors import EngineNotInitialized, FrameError, SessionBusyError
from .types import ChromakeyResult, DetectionConfig, FrameOutcome, SessionStats, VideoConfig
from .video.frame_extractor import FrameExtractor
from .video.frame_scheduler import calculate_frame_timestamps
from .video.source_loader import SourceLoader, Source

log = logging.getLogger(__name__)

async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value

class ConsensusDriver:
    """Drive one video through sampling, extraction and an engine session.

    The engine holds per-session state, so a driver runs one video at a time;
    an overlapping call raises SessionBusyError.
    """

    def __init__(self, engine: DetectionEngine, loader: Optional[SourceLoader] = None,
                 extractor: Optional[FrameExtractor] = None):
        self.engine = engine
        self.loader = loader or SourceLoader()
        self.extractor = extractor or FrameExtractor()
        self.initialized = False
        self.last_stats: Optional[SessionStats] = None
        self._busy = False

    async def init(self) -> None:
        if self.initialized:
            return
        await _resolve(self.engine.init())
        self.initialized = True

    async def set_config(self, config: DetectionConfig) -> None:
        if self.initialized:
            await _resolve(self.engine.set_config(config))

    async def detect_from_video(self, source: Source, config: Optional[VideoConfig] = None,
                                on_frame: Optional[Callable[[FrameOutcome], None]] = None
                                ) -> Optional[ChromakeyResult]:
        if not self.initialized:
            raise EngineNotInitialized()
        if self._busy:
            raise SessionBusyError()
        cfg = VideoConfig.model_validate(config) if config is not None else VideoConfig()
        self._busy = True
        loaded = None
        try:
            loaded = await self.loader.load(source)
            handle = loaded.handle
            plan = calculate_frame_timestamps(handle.duration, cfg.frame_sample_count,
                                              cfg.sample_strategy, cfg.max_duration)
            stats = SessionStats(plan=plan)
            self.last_stats = stats

            await _resolve(self.engine.start_session())
            for i, t in enumerate(plan):
                try:
                    frame = await self.extractor.extract(handle, t)
                except FrameError as e:
                    log.warning("Failed to extract frame at %.3fs: %s", t, e)
                    outcome = FrameOutcome(i, t, None, str(e))
                    stats.skipped.append(outcome)
                else:
                    accepted = bool(await _resolve(self.engine.add_frame(frame.pixels, frame.width, frame.height)))
                    stats.submitted += 1
                    stats.accepted += int(accepted)
                    outcome = FrameOutcome(i, t, accepted)
                if on_frame is not None:
                    on_frame(outcome)

            result = await _resolve(self.engine.get_consensus())
            if isinstance(result, dict):
                result = ChromakeyResult.from_dict(result)
            log.info("consensus over %d/%d frames (%d skipped): %s",
                     stats.accepted, len(plan), len(stats.skipped),
                     "none" if result is None else f"hue={result.hue:.1f}")
            return result
        finally:
            self._busy = False
            if loaded is not None:
                self.loader.release(loaded)
