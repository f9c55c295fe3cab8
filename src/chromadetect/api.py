from __future__ import annotations
import inspect
from typing import Any, Callable, Dict, Optional, Union
import numpy as np
from .engine.base import DetectionEngine
from .errors import EngineNotInitialized
from .processor import ConsensusDriver
from .types import ChromakeyResult, DetectionConfig, FrameOutcome, VideoConfig
from .video.frame_extractor import FrameExtractor
from .video.source_loader import Source, SourceLoader

class ChromaDetect:
    """Public entry point: configure an engine and run images or videos through it."""

    def __init__(self, engine: DetectionEngine, loader: Optional[SourceLoader] = None,
                 extractor: Optional[FrameExtractor] = None):
        self.engine = engine
        self.video = ConsensusDriver(engine, loader=loader, extractor=extractor)
        self.config = DetectionConfig()

    @property
    def initialized(self) -> bool:
        return self.video.initialized

    async def init(self) -> None:
        await self.video.init()
        await self.video.set_config(self.config)

    async def set_config(self, config: Union[DetectionConfig, Dict[str, Any]]) -> DetectionConfig:
        """Merge `config` over the current thresholds and push them to the engine."""
        update = config.model_dump(exclude_unset=True) if isinstance(config, DetectionConfig) \
            else DetectionConfig.model_validate(config).model_dump(exclude_unset=True)
        self.config = DetectionConfig.model_validate({**self.config.model_dump(), **update})
        await self.video.set_config(self.config)
        return self.config

    async def detect_from_image(self, pixels: np.ndarray) -> Optional[ChromakeyResult]:
        if not self.initialized:
            raise EngineNotInitialized()
        pixels = np.ascontiguousarray(pixels, dtype=np.uint8)
        h, w = pixels.shape[:2]
        res = self.engine.detect_from_image(pixels, w, h)
        if inspect.isawaitable(res):
            res = await res
        if isinstance(res, dict):
            res = ChromakeyResult.from_dict(res)
        return res

    async def detect_from_video(self, source: Source, config: Union[VideoConfig, Dict[str, Any], None] = None,
                                on_frame: Optional[Callable[[FrameOutcome], None]] = None
                                ) -> Optional[ChromakeyResult]:
        return await self.video.detect_from_video(source, config, on_frame=on_frame)
