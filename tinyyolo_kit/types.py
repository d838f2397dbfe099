from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle as (x, y, w, h), with (x, y) the top-left corner.

    Width/height are kept as produced by the network: no clipping and no
    validation that they are non-negative.
    """

    x: float
    y: float
    w: float
    h: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    @property
    def area(self) -> float:
        return self.w * self.h

    def scaled_by(self, sx: float, sy: float) -> "Rect":
        return Rect(x=self.x * sx, y=self.y * sy, w=self.w * sx, h=self.h * sy)

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.left, self.top, self.right, self.bottom


@dataclass(frozen=True)
class Candidate:
    """
    One anchor that cleared the objectness gate, in model input space.
    """

    class_index: int
    confidence: float
    rect: Rect


@dataclass(frozen=True)
class Detection:
    """
    Final detection in source image space.
    """

    class_index: int
    confidence: float
    rect: Rect

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.rect.as_xyxy()


@dataclass(frozen=True)
class LabeledDetection:
    detection: Detection
    class_name: str
    color: Tuple[int, int, int]


@dataclass(frozen=True)
class FrameResult:
    """
    Everything produced for one frame: timing, ranked detections and any extra
    model outputs (e.g. a depth map) passed through untouched.
    """

    inference_time_ms: float
    detections: List[Detection]
    extra_outputs: Dict[str, Any] = field(default_factory=dict)
