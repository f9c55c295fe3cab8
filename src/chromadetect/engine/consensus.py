from __future__ import annotations
from dataclasses import dataclass
import math
from typing import List, Optional
from ..types import RGB, ChromakeyResult, DetectionMethod

@dataclass
class HueConsensusParams:
    hue_tolerance: float = 10.0     # degrees, with 0/360 wraparound

def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))

def hue_distance(a: float, b: float) -> float:
    d = abs(a - b) % 360.0
    return min(d, 360.0 - d)

class HueConsensus:
    """Accumulate per-frame results; the consensus is the largest group of similar hues.

    A result joins the first group whose first member is within the hue tolerance.
    The winning group is averaged and its confidence scaled by the share of frames
    that agree with it.
    """

    def __init__(self, params: Optional[HueConsensusParams] = None):
        self.p = params or HueConsensusParams()
        self.results: List[ChromakeyResult] = []

    def add(self, result: ChromakeyResult) -> None:
        self.results.append(result)

    def __len__(self) -> int:
        return len(self.results)

    def _group(self) -> List[List[ChromakeyResult]]:
        groups: List[List[ChromakeyResult]] = []
        for r in self.results:
            for g in groups:
                if hue_distance(r.hue, g[0].hue) < self.p.hue_tolerance:
                    g.append(r)
                    break
            else:
                groups.append([r])
        return groups

    @staticmethod
    def _average(group: List[ChromakeyResult]) -> ChromakeyResult:
        n = float(len(group))
        return ChromakeyResult(
            color=RGB(
                r=_round_half_up(sum(x.color.r for x in group) / n),
                g=_round_half_up(sum(x.color.g for x in group) / n),
                b=_round_half_up(sum(x.color.b for x in group) / n),
            ),
            confidence=sum(x.confidence for x in group) / n,
            coverage=sum(x.coverage for x in group) / n,
            hue=sum(x.hue for x in group) / n,
            method=DetectionMethod.HYBRID,
        )

    def compute(self) -> Optional[ChromakeyResult]:
        if not self.results:
            return None
        groups = self._group()
        # ties go to the later group
        best = max(reversed(groups), key=len)
        avg = self._average(best)
        agreement = len(best) / len(self.results)
        return ChromakeyResult(
            color=avg.color,
            confidence=avg.confidence * agreement,
            coverage=avg.coverage,
            hue=avg.hue,
            method=DetectionMethod.HYBRID,
        )
