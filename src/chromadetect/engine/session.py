from __future__ import annotations
import logging
from typing import Optional
import numpy as np
from ..types import ChromakeyResult, DetectionConfig
from .base import FrameDetector
from .consensus import HueConsensus, HueConsensusParams

log = logging.getLogger(__name__)

class SessionEngine:
    """DetectionEngine built from a single-frame detector plus hue consensus."""

    def __init__(self, detector: FrameDetector, config: Optional[DetectionConfig] = None,
                 consensus: Optional[HueConsensusParams] = None):
        self.detector = detector
        self.config = config or DetectionConfig()
        self.consensus_params = consensus or HueConsensusParams()
        self._session: Optional[HueConsensus] = None
        self.initialized = False

    def init(self) -> None:
        self.initialized = True

    def set_config(self, config: DetectionConfig) -> None:
        self.config = DetectionConfig.model_validate(config)

    def detect_from_image(self, pixels: np.ndarray, width: int, height: int) -> Optional[ChromakeyResult]:
        return self.detector(pixels, int(width), int(height), self.config)

    @property
    def in_session(self) -> bool:
        return self._session is not None

    def start_session(self) -> None:
        if self._session is not None:
            log.debug("discarding unconsumed session with %d frames", len(self._session))
        self._session = HueConsensus(self.consensus_params)

    def add_frame(self, pixels: np.ndarray, width: int, height: int) -> bool:
        if self._session is None:
            return False
        res = self.detector(pixels, int(width), int(height), self.config)
        if res is None:
            return False
        self._session.add(res)
        return True

    def get_consensus(self) -> Optional[ChromakeyResult]:
        session, self._session = self._session, None
        if session is None:
            return None
        return session.compute()
