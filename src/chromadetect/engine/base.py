from __future__ import annotations
from typing import Any, Awaitable, Optional, Protocol, Union, runtime_checkable
import numpy as np
from ..types import ChromakeyResult, DetectionConfig

MaybeAwaitable = Union[Any, Awaitable[Any]]

@runtime_checkable
class DetectionEngine(Protocol):
    """Session-oriented color-detection engine. Any method may be a coroutine.

    One session at a time per instance: start_session() -> add_frame()* -> get_consensus().
    """
    def init(self) -> MaybeAwaitable: ...
    def set_config(self, config: DetectionConfig) -> MaybeAwaitable: ...
    def detect_from_image(self, pixels: np.ndarray, width: int, height: int) -> MaybeAwaitable: ...
    def start_session(self) -> MaybeAwaitable: ...
    def add_frame(self, pixels: np.ndarray, width: int, height: int) -> MaybeAwaitable: ...
    def get_consensus(self) -> MaybeAwaitable: ...

class FrameDetector(Protocol):
    """Single-frame detector: RGBA pixels -> result, or None when nothing qualifies."""
    def __call__(self, pixels: np.ndarray, width: int, height: int,
                 config: DetectionConfig) -> Optional[ChromakeyResult]: ...
