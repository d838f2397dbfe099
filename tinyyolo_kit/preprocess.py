from __future__ import annotations

from typing import Tuple

import numpy as np

# Indices of R, G, B within each supported pixel layout.
_RGB_INDICES = {
    "bgr": (2, 1, 0),
    "rgb": (0, 1, 2),
    "bgra": (2, 1, 0),
    "rgba": (0, 1, 2),
    "argb": (1, 2, 3),
}


def prepare_input(
    frame: np.ndarray,
    input_size: Tuple[int, int] = (416, 416),
    *,
    channel_order: str = "bgr",
    quantized: bool = False,
) -> np.ndarray:
    """
    Turn a camera frame into the NHWC RGB tensor the detector expects.

    The frame is resized straight to `input_size` (width, height) with no
    letterbox, which is what `map_rect` assumes when scaling boxes back. Any
    alpha channel is dropped.

    Returns:
        (1, H, W, 3) uint8 when `quantized`, else float32 in [0, 1]
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for prepare_input(). Install with `pip install opencv-python`.") from e

    if frame is None or not hasattr(frame, "shape"):
        raise TypeError("frame must be a NumPy array.")
    order = channel_order.lower()
    if order not in _RGB_INDICES:
        raise ValueError(f"Unsupported channel_order {channel_order!r}; expected one of {sorted(_RGB_INDICES)}")
    expected_channels = len(order)
    if frame.ndim != 3 or frame.shape[2] != expected_channels:
        raise ValueError(f"Expected frame shape (H, W, {expected_channels}) for {order}, got {frame.shape}")

    in_w, in_h = input_size
    if in_w <= 0 or in_h <= 0:
        raise ValueError(f"input_size must be positive, got {input_size}")

    h, w = frame.shape[:2]
    if (w, h) != (in_w, in_h):
        frame = cv2.resize(frame, (in_w, in_h), interpolation=cv2.INTER_LINEAR)

    rgb = np.ascontiguousarray(frame[:, :, list(_RGB_INDICES[order])])
    if quantized:
        return rgb.astype(np.uint8)[None, ...]
    return (rgb.astype(np.float32) / 255.0)[None, ...]
