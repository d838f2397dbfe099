from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

import numpy as np

from .errors import ShapeMismatch
from .types import Candidate, Rect

logger = logging.getLogger(__name__)

# cx, cy, w, h, objectness
BOX_FIELDS = 5

_FLOAT32_DTYPES = {
    "little": np.dtype("<f4"),
    "big": np.dtype(">f4"),
}

BufferLike = Union[bytes, bytearray, memoryview, np.ndarray, Sequence[float]]


def floats_from_bytes(data: Union[bytes, bytearray, memoryview], byte_order: str = "little") -> np.ndarray:
    """
    Read an owned byte buffer as consecutive 32-bit IEEE floats.

    The result is a native-endian float32 copy, so it stays valid after `data`
    is released or reused by the inference engine.
    """

    if byte_order not in _FLOAT32_DTYPES:
        raise ValueError(f"byte_order must be 'little' or 'big', got {byte_order!r}")

    raw = memoryview(data).cast("B")
    itemsize = _FLOAT32_DTYPES[byte_order].itemsize
    if raw.nbytes % itemsize != 0:
        raise ShapeMismatch(f"Byte buffer of length {raw.nbytes} is not a whole number of float32 values.")

    return np.frombuffer(raw, dtype=_FLOAT32_DTYPES[byte_order]).astype(np.float32)


def anchor_records(
    buffer: BufferLike,
    num_classes: int,
    num_anchors: Optional[int] = None,
    byte_order: str = "little",
) -> np.ndarray:
    """
    View a flat output buffer as an (A, 5 + C) array of anchor records.

    Raises ShapeMismatch when the length is not a whole number of records or
    disagrees with `num_anchors`.
    """

    if num_classes < 1:
        raise ShapeMismatch(f"num_classes must be >= 1, got {num_classes}")

    if isinstance(buffer, (bytes, bytearray, memoryview)):
        flat = floats_from_bytes(buffer, byte_order=byte_order)
    else:
        # Keep the network's float precision; only non-float input is upcast.
        flat = np.asarray(buffer).reshape(-1)
        if not np.issubdtype(flat.dtype, np.floating):
            flat = flat.astype(np.float64)

    stride = BOX_FIELDS + num_classes
    if flat.size % stride != 0:
        raise ShapeMismatch(
            f"Buffer of {flat.size} values is not a multiple of the anchor stride {stride} "
            f"(5 + {num_classes} classes)."
        )

    anchors = flat.size // stride
    if num_anchors is not None and num_anchors != anchors:
        raise ShapeMismatch(
            f"Expected {num_anchors} anchors x {stride} values = {num_anchors * stride}, got {flat.size} values."
        )

    return flat.reshape(anchors, stride)


def decode_candidates(
    buffer: BufferLike,
    num_classes: int,
    objectness_threshold: float,
    num_anchors: Optional[int] = None,
    byte_order: str = "little",
) -> List[Candidate]:
    """
    Decode anchor records into candidates, in anchor order.

    An anchor yields a candidate when its objectness is strictly above
    `objectness_threshold` and at least one class score is strictly positive.
    The reported confidence is the winning class score; objectness only gates.
    Box values are taken as-is (no range checks, no centre conversion).
    """

    records = anchor_records(buffer, num_classes, num_anchors=num_anchors, byte_order=byte_order)

    # Compare in the buffer's own precision.
    gated = records[records[:, 4] > records.dtype.type(objectness_threshold)]
    if gated.shape[0] == 0:
        logger.debug("decode: 0/%d anchors above objectness %.3f", records.shape[0], objectness_threshold)
        return []

    # NaN never wins a class comparison.
    class_scores = np.where(np.isnan(gated[:, BOX_FIELDS:]), -np.inf, gated[:, BOX_FIELDS:])
    best = np.argmax(class_scores, axis=1)
    best_scores = class_scores[np.arange(best.size), best]
    has_class = best_scores > 0.0

    candidates = [
        Candidate(
            class_index=int(cls_idx),
            confidence=float(score),
            rect=Rect(x=float(x), y=float(y), w=float(w), h=float(h)),
        )
        for (x, y, w, h), cls_idx, score in zip(
            gated[has_class, 0:4], best[has_class], best_scores[has_class]
        )
    ]

    logger.debug(
        "decode: %d/%d anchors above objectness %.3f, %d with a positive class score",
        gated.shape[0],
        records.shape[0],
        objectness_threshold,
        len(candidates),
    )
    return candidates
