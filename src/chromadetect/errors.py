from __future__ import annotations
from typing import Optional

class ChromaDetectError(Exception):
    """Base class for every error raised by chromadetect."""

class UnsupportedSourceError(ChromaDetectError, TypeError):
    pass

class LoadError(ChromaDetectError):
    def __init__(self, message: str = "Failed to load video", src: Optional[str] = None):
        super().__init__(message)
        self.src = src

class LoadTimeout(LoadError):
    pass

class FrameError(ChromaDetectError):
    """Per-frame failure; the frame is skipped and the session continues."""
    def __init__(self, message: str, timestamp: float):
        super().__init__(message)
        self.timestamp = float(timestamp)

class SeekFailed(FrameError):
    pass

class FrameExtractionTimeout(FrameError):
    pass

class EngineNotInitialized(ChromaDetectError):
    def __init__(self, message: str = "Not initialized"):
        super().__init__(message)

class SessionBusyError(ChromaDetectError):
    def __init__(self, message: str = "A detection session is already running on this engine"):
        super().__init__(message)
