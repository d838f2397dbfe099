from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple, Union

import numpy as np

from .types import Detection, LabeledDetection, Rect

# Base colours in BGR (OpenCV order): red, sky blue, green, orange, blue,
# purple, magenta, yellow, cyan, brown.
_BASE_COLORS: Tuple[Tuple[int, int, int], ...] = (
    (0, 0, 255),
    (250, 200, 90),
    (0, 255, 0),
    (0, 127, 255),
    (255, 0, 0),
    (127, 0, 127),
    (255, 0, 255),
    (0, 255, 255),
    (255, 255, 0),
    (51, 102, 153),
)
_COLOR_STRIDE = 10


def _shift(color: Tuple[int, int, int], percentage: float) -> Tuple[int, int, int]:
    delta = 255.0 * percentage / 100.0
    return tuple(int(np.clip(round(c + delta), 0, 255)) for c in color)  # type: ignore[return-value]


def color_for_class(class_index: int) -> Tuple[int, int, int]:
    """
    Deterministic BGR colour for a class index.

    Slot `class_index + 1` picks one of ten base colours, brightened by 50% on
    the first pass through the palette and by one stride step (10%) less on
    each further pass.
    """

    slot = class_index + 1
    base = _BASE_COLORS[slot % len(_BASE_COLORS)]
    percentage = (_COLOR_STRIDE // 2 - slot // len(_BASE_COLORS)) * _COLOR_STRIDE
    return _shift(base, percentage)


def caption(det: Detection, labels: Optional[Sequence[str]] = None, show_score: bool = True) -> str:
    """
    "<name> <confidence>" for a detection; the class index stands in for the
    name when there is no label store or no entry for it.
    """

    if labels is not None and 0 <= det.class_index < len(labels) and labels[det.class_index]:
        name = labels[det.class_index]
    else:
        name = str(det.class_index)
    return f"{name} {det.confidence:.2f}" if show_score else name


def _pixel_box(rect: Rect, w: int, h: int) -> Tuple[int, int, int, int]:
    # Detections are never clipped; only the drawn box is.
    x1, y1, x2, y2 = rect.as_xyxy()
    return (
        int(np.clip(round(x1), 0, w - 1)),
        int(np.clip(round(y1), 0, h - 1)),
        int(np.clip(round(x2), 0, w - 1)),
        int(np.clip(round(y2), 0, h - 1)),
    )


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Union[Detection, LabeledDetection]],
    *,
    labels: Optional[Sequence[str]] = None,
    show_score: bool = True,
    inference_time_ms: Optional[float] = None,
    box_thickness: int = 2,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Draw detections on an OpenCV BGR image and return a copy.

    Accepts plain `Detection`s (named from `labels`, coloured by class) or
    `LabeledDetection`s (their own name and colour). When `inference_time_ms`
    is given it is printed in the top-left corner.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_detections(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr.copy()
    h, w = out.shape[:2]
    font = cv2.FONT_HERSHEY_SIMPLEX

    for item in detections:
        if isinstance(item, LabeledDetection):
            det, color = item.detection, item.color
            text = f"{item.class_name} {det.confidence:.2f}" if show_score else item.class_name
        else:
            det, color = item, color_for_class(item.class_index)
            text = caption(item, labels, show_score)

        x1, y1, x2, y2 = _pixel_box(det.rect, w, h)
        cv2.rectangle(out, (x1, y1), (x2, y2), color, thickness=box_thickness)

        (tw, th), baseline = cv2.getTextSize(text, font, font_scale, font_thickness)
        # Caption sits above the box, or just inside it at the top edge.
        top = y1 - th - baseline if y1 - th - baseline >= 0 else y1
        cv2.rectangle(out, (x1, top), (min(x1 + tw, w - 1), min(top + th + baseline, h - 1)), color, thickness=-1)
        cv2.putText(out, text, (x1, min(top + th, h - 1)), font, font_scale, (255, 255, 255), font_thickness, cv2.LINE_AA)

    if inference_time_ms is not None:
        cv2.putText(out, f"{inference_time_ms:.1f} ms", (4, 16), font, font_scale, (0, 255, 0), font_thickness, cv2.LINE_AA)

    return out
