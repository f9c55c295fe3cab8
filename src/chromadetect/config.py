from __future__ import annotations
import importlib
import inspect
import os
from pathlib import Path
from typing import Any
from pydantic import BaseModel, Field
from .types import DetectionConfig, VideoConfig
from .utils.io import load_yaml

def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw not in (None, "") else default

class Settings(BaseModel):
    log_level: str = Field(default_factory=lambda: os.environ.get("CHROMADETECT_LOG_LEVEL", "INFO"))
    load_timeout: float = Field(default_factory=lambda: _env_float("CHROMADETECT_LOAD_TIMEOUT", 30.0), gt=0)
    seek_timeout: float = Field(default_factory=lambda: _env_float("CHROMADETECT_SEEK_TIMEOUT", 5.0), gt=0)
    engine: str | None = Field(default_factory=lambda: os.environ.get("CHROMADETECT_ENGINE") or None)
    tmp_dir: str | None = Field(default_factory=lambda: os.environ.get("CHROMADETECT_TMP_DIR") or None)
    video: VideoConfig = Field(default_factory=VideoConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)

def load_settings(path: str | Path | None = None, **overrides: Any) -> Settings:
    """Environment defaults, overlaid by a YAML file, overlaid by keyword overrides."""
    data: dict = {}
    if path:
        data.update(load_yaml(path))
    data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings.model_validate(data)

def load_engine(spec: str) -> Any:
    """Import `package.module:attr`; classes and factories are called with no arguments."""
    if ":" not in spec:
        raise ValueError(f"engine must look like 'package.module:attr', got {spec!r}")
    mod_name, attr = spec.split(":", 1)
    obj = importlib.import_module(mod_name)
    for part in attr.split("."):
        obj = getattr(obj, part)
    if inspect.isclass(obj) or (callable(obj) and not hasattr(obj, "start_session")):
        obj = obj()
    return obj
