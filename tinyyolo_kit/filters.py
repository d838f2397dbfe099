from __future__ import annotations

from typing import Iterable, List, TypeVar

import numpy as np

from .types import Candidate, Detection

T = TypeVar("T", Candidate, Detection)


def filter_by_confidence(items: Iterable[T], threshold: float) -> List[T]:
    """
    Keep entries whose class confidence is >= threshold, preserving order.

    The comparison runs at float32, the precision the network emits scores in,
    so a score equal to the threshold in float32 is kept.

    This is the second filtering stage; the first is the objectness gate inside
    `decode_candidates`, which looks at a different quantity.
    """

    limit = np.float32(threshold)
    return [item for item in items if np.float32(item.confidence) >= limit]
