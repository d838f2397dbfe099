from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .decode import BufferLike, decode_candidates
from .filters import filter_by_confidence
from .mapping import map_detections
from .nms import non_max_suppression
from .rank import rank_detections
from .types import Detection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostConfig:
    """
    Post-processing configuration for a single-shot anchor output of shape
    (num_anchors, 5 + num_classes): [x, y, w, h, objectness, class_scores...].

    Defaults match YOLOv3-tiny at 416x416: (13*13 + 26*26) * 3 = 2535 anchors, 80 COCO classes.
    """

    num_anchors: Optional[int] = 2535
    num_classes: int = 80
    # Gate on objectness during decode (strict >).
    objectness_threshold: float = 0.3
    # Filter on class confidence after NMS (>=).
    confidence_threshold: float = 0.3
    iou_threshold: float = 0.4
    # (width, height) of the model input.
    input_size: Tuple[int, int] = (416, 416)
    # Byte order used when the raw output arrives as bytes.
    byte_order: str = "little"
    # Optional cap on the ranked output; None keeps all.
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        if self.num_anchors is not None and self.num_anchors < 1:
            raise ValueError("num_anchors must be >= 1 (or None to infer from the buffer)")
        if self.num_classes < 1:
            raise ValueError("num_classes must be >= 1")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if len(self.input_size) != 2 or self.input_size[0] <= 0 or self.input_size[1] <= 0:
            raise ValueError("input_size must be a positive (width, height) pair")
        if self.byte_order not in ("little", "big"):
            raise ValueError("byte_order must be 'little' or 'big'")
        if self.max_detections is not None and self.max_detections < 1:
            raise ValueError("max_detections must be >= 1 (or None)")


class Postprocessor:
    """
    Raw output buffer -> ranked detections in image coordinates.

        decode (objectness gate) -> per-class NMS -> confidence filter
        -> scale to image -> sort by confidence

    Holds no per-frame state, so one instance can serve several threads.
    """

    def __init__(self, cfg: PostConfig = PostConfig()):
        self.cfg = cfg

    def process(self, buffer: BufferLike, image_size: Tuple[int, int]) -> List[Detection]:
        """
        Args:
            buffer: flat output for one frame (bytes or numeric array)
            image_size: (width, height) of the source frame
        """

        cfg = self.cfg
        candidates = decode_candidates(
            buffer,
            num_classes=cfg.num_classes,
            objectness_threshold=cfg.objectness_threshold,
            num_anchors=cfg.num_anchors,
            byte_order=cfg.byte_order,
        )
        if not candidates:
            return []

        kept = non_max_suppression(candidates, cfg.num_classes, cfg.iou_threshold)
        kept = filter_by_confidence(kept, cfg.confidence_threshold)
        if not kept:
            return []

        detections = rank_detections(map_detections(kept, cfg.input_size, image_size))
        if cfg.max_detections is not None:
            detections = detections[: cfg.max_detections]

        logger.debug("postprocess: %d candidates -> %d detections", len(candidates), len(detections))
        return detections
