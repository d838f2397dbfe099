from __future__ import annotations

import logging
from typing import Dict, List, Sequence

import numpy as np

from .errors import InvalidClassIndex
from .types import Candidate, Rect

logger = logging.getLogger(__name__)


def iou(a: Rect, b: Rect) -> float:
    """
    Intersection-over-union of two rects; 0.0 when the union area is not positive.
    """

    inter_w = max(0.0, min(a.right, b.right) - max(a.left, b.left))
    inter_h = max(0.0, min(a.bottom, b.bottom) - max(a.top, b.top))
    inter = inter_w * inter_h
    union = a.area + b.area - inter
    if union <= 0.0:
        return 0.0
    return inter / union


def pairwise_iou(box: np.ndarray, boxes: np.ndarray) -> np.ndarray:
    """
    IoU of one xyxy box (4,) against many (N, 4).
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.float64)

    xx1 = np.maximum(box[0], boxes[:, 0])
    yy1 = np.maximum(box[1], boxes[:, 1])
    xx2 = np.minimum(box[2], boxes[:, 2])
    yy2 = np.minimum(box[3], boxes[:, 3])

    inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)
    area = (box[2] - box[0]) * (box[3] - box[1])
    areas = (boxes[:, 2] - boxes[:, 0]) * (boxes[:, 3] - boxes[:, 1])
    union = area + areas - inter

    out = np.zeros_like(inter, dtype=np.float64)
    np.divide(inter, union, out=out, where=union > 0.0)
    return out


def overlaps(iou_values: np.ndarray, iou_threshold: float) -> np.ndarray:
    """
    True where a box is suppressed by a kept one: IoU strictly above the
    threshold, or an exact duplicate (IoU 1.0). A pair at exactly the
    threshold is kept; with 1.0 only exact duplicates collapse and with 0.0
    any pair with positive overlap does.
    """

    return (iou_values > iou_threshold) | (iou_values >= 1.0)


def nms(boxes: np.ndarray, scores: np.ndarray, iou_threshold: float) -> np.ndarray:
    """
    Greedy NMS over one class. Expects boxes shape (N, 4) in xyxy and scores (N,).
    Returns kept indices, highest score first; equal scores keep input order.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    order = np.argsort(-scores, kind="stable")
    keep = []

    while order.size > 0:
        i = order[0]
        keep.append(i)
        rest = order[1:]
        order = rest[~overlaps(pairwise_iou(boxes[i], boxes[rest]), iou_threshold)]

    return np.array(keep, dtype=np.int64)


def suppress(candidates: Sequence[Candidate], iou_threshold: float) -> List[Candidate]:
    """
    Single-class suppression. Returns a new list; `candidates` is not modified.
    """

    if not candidates:
        return []

    boxes = np.array([c.rect.as_xyxy() for c in candidates], dtype=np.float64)
    scores = np.array([c.confidence for c in candidates], dtype=np.float64)
    return [candidates[i] for i in nms(boxes, scores, iou_threshold)]


def non_max_suppression(
    candidates: Sequence[Candidate],
    num_classes: int,
    iou_threshold: float,
) -> List[Candidate]:
    """
    Per-class NMS. Classes are processed 0..num_classes-1 independently and the
    survivors are concatenated in class order; boxes of different classes
    never suppress each other.
    """

    by_class: Dict[int, List[Candidate]] = {}
    for cand in candidates:
        if not 0 <= cand.class_index < num_classes:
            raise InvalidClassIndex(f"class_index {cand.class_index} outside [0, {num_classes})")
        by_class.setdefault(cand.class_index, []).append(cand)

    kept: List[Candidate] = []
    for cls in range(num_classes):
        group = by_class.get(cls)
        if group:
            kept.extend(suppress(group, iou_threshold))

    logger.debug("nms: kept %d/%d candidates across %d classes", len(kept), len(candidates), len(by_class))
    return kept
