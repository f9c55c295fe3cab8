from .api import ChromaDetect
from .engine.session import SessionEngine
from .errors import (
    ChromaDetectError,
    EngineNotInitialized,
    FrameExtractionTimeout,
    LoadError,
    LoadTimeout,
    SeekFailed,
    SessionBusyError,
    UnsupportedSourceError,
)
from .processor import ConsensusDriver
from .types import RGB, ChromakeyResult, DetectionConfig, DetectionMethod, MediaBlob, SampleStrategy, VideoConfig
from .video.frame_scheduler import calculate_frame_timestamps

__version__ = "0.1.0"
