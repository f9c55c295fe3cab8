from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
import numpy as np
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

class SampleStrategy(str, Enum):
    UNIFORM = "uniform"
    KEYFRAMES = "keyframes"

class DetectionMethod(str, Enum):
    EDGE = "edge"
    CLUSTER = "cluster"
    HYBRID = "hybrid"

@dataclass(frozen=True)
class RGB:
    r: int
    g: int
    b: int

@dataclass(frozen=True)
class ChromakeyResult:
    color: RGB
    confidence: float           # [0,1]
    coverage: float             # fraction of the frame
    hue: float                  # degrees [0,360)
    method: Optional[DetectionMethod] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "color": {"r": self.color.r, "g": self.color.g, "b": self.color.b},
            "confidence": float(self.confidence),
            "coverage": float(self.coverage),
            "hue": float(self.hue),
        }
        if self.method is not None:
            out["method"] = self.method.value
        return out

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ChromakeyResult":
        c = d.get("color") or {}
        method = d.get("method")
        return cls(
            color=RGB(int(c.get("r", 0)), int(c.get("g", 0)), int(c.get("b", 0))),
            confidence=float(d.get("confidence", 0.0)),
            coverage=float(d.get("coverage", 0.0)),
            hue=float(d.get("hue", 0.0)),
            method=DetectionMethod(method) if method else None,
        )

@dataclass(frozen=True)
class FrameSample:
    timestamp: float
    pixels: np.ndarray  # uint8 [H, W, 4] RGBA
    width: int
    height: int

@dataclass(frozen=True)
class MediaBlob:
    """Raw media content, e.g. an uploaded file body."""
    data: bytes
    type: str = ""
    name: str = ""

@dataclass(frozen=True)
class FrameOutcome:
    index: int
    timestamp: float
    accepted: Optional[bool] = None   # None -> frame skipped
    error: Optional[str] = None

@dataclass
class SessionStats:
    plan: tuple = ()
    submitted: int = 0
    accepted: int = 0
    skipped: List[FrameOutcome] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan": [float(t) for t in self.plan],
            "submitted": self.submitted,
            "accepted": self.accepted,
            "skipped": [{"timestamp": s.timestamp, "error": s.error} for s in self.skipped],
        }

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class DetectionConfig(_CamelModel):
    min_area_percentage: float = Field(0.25, ge=0.0, le=1.0)
    min_saturation: float = Field(0.6, ge=0.0, le=1.0)
    edge_sample_percentage: float = Field(0.15, ge=0.0, le=1.0)
    confidence_threshold: float = Field(0.7, ge=0.0, le=1.0)

class VideoConfig(_CamelModel):
    frame_sample_count: int = Field(8, ge=1)
    sample_strategy: SampleStrategy = SampleStrategy.UNIFORM
    max_duration: float = Field(30.0, gt=0.0)
