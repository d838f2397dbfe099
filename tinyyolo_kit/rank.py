from __future__ import annotations

from typing import Iterable, List

from .types import Detection


def rank_detections(detections: Iterable[Detection]) -> List[Detection]:
    # sorted() is stable: equal confidences keep their incoming order.
    return sorted(detections, key=lambda d: d.confidence, reverse=True)
