from __future__ import annotations
from typing import Tuple, Union
import math
import numpy as np
from ..types import SampleStrategy

def _spaced(start: float, span: float, n: int) -> np.ndarray:
    # n points from [start, start+span), step span/n
    if n <= 0:
        return np.zeros((0,), dtype=np.float64)
    return start + span * np.arange(n, dtype=np.float64) / n

def calculate_frame_timestamps(duration: float, count: int,
                               strategy: Union[SampleStrategy, str] = SampleStrategy.UNIFORM,
                               max_duration: float = 30.0) -> Tuple[float, ...]:
    """Timestamps (seconds, ascending) to sample from a clip of `duration` seconds.

    uniform:   (i+1) * eff / (count+1), strictly inside (0, eff)
    keyframes: 40% from the first 10%, 40% from the last 10%, the rest from [30%, 70%)
    where eff = min(duration, max_duration).
    """
    duration = float(duration); max_duration = float(max_duration)
    if not duration > 0 or math.isnan(duration):
        raise ValueError(f"duration must be > 0, got {duration}")
    if not max_duration > 0:
        raise ValueError(f"max_duration must be > 0, got {max_duration}")
    if int(count) < 1:
        raise ValueError(f"count must be >= 1, got {count}")
    count = int(count)
    strategy = SampleStrategy(strategy)
    eff = min(duration, max_duration)

    if strategy == SampleStrategy.UNIFORM:
        interval = eff / (count + 1)
        ts = np.arange(1, count + 1, dtype=np.float64) * interval
        return tuple(float(t) for t in ts)

    edge = int(math.floor(count * 0.4))
    middle = count - 2 * edge
    ts = np.concatenate([
        _spaced(0.0, eff * 0.1, edge),
        _spaced(eff * 0.9, eff * 0.1, edge),
        _spaced(eff * 0.3, eff * 0.4, middle),
    ])
    ts.sort(kind="stable")
    return tuple(float(t) for t in ts)
