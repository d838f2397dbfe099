from __future__ import annotations

from typing import Iterable, List, Tuple

from .types import Candidate, Detection, Rect


def scale_factors(input_size: Tuple[int, int], image_size: Tuple[int, int]) -> Tuple[float, float]:
    in_w, in_h = input_size
    img_w, img_h = image_size
    if in_w <= 0 or in_h <= 0:
        raise ValueError(f"input_size must be positive, got {input_size}")
    if img_w <= 0 or img_h <= 0:
        raise ValueError(f"image_size must be positive, got {image_size}")
    return img_w / in_w, img_h / in_h


def map_rect(rect: Rect, input_size: Tuple[int, int], image_size: Tuple[int, int]) -> Rect:
    """
    Map a rect from model input space to image space by scaling each axis.

    Assumes the frame was resized straight to the model input (no letterbox,
    no crop); there is no translation and no clipping to the image bounds.
    """

    sx, sy = scale_factors(input_size, image_size)
    return rect.scaled_by(sx, sy)


def map_detections(
    candidates: Iterable[Candidate],
    input_size: Tuple[int, int],
    image_size: Tuple[int, int],
) -> List[Detection]:
    sx, sy = scale_factors(input_size, image_size)
    return [
        Detection(class_index=c.class_index, confidence=c.confidence, rect=c.rect.scaled_by(sx, sy))
        for c in candidates
    ]
