from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, List, Sequence, Tuple, Union

from .errors import InvalidClassIndex
from .types import Detection, LabeledDetection
from .visualize import color_for_class

PathLike = Union[str, Path]


def load_labels(path: PathLike) -> List[str]:
    """
    Load a darknet-style `.names` file: one class name per line, line N is class N.

    Trailing blank lines are dropped; blank lines in the middle are kept so
    indices stay aligned.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Labels file not found: {path}")
    lines = [line.strip() for line in path.read_text(encoding="utf-8").splitlines()]
    while lines and not lines[-1]:
        lines.pop()
    return lines


def check_label_store(labels: Sequence[str], num_classes: int) -> None:
    if len(labels) < num_classes:
        raise InvalidClassIndex(f"Label store has {len(labels)} entries but the model emits {num_classes} classes.")


def attach_labels(
    detections: Iterable[Detection],
    labels: Sequence[str],
    color_fn: Callable[[int], Tuple[int, int, int]] = color_for_class,
) -> List[LabeledDetection]:
    out: List[LabeledDetection] = []
    for det in detections:
        if not 0 <= det.class_index < len(labels):
            raise InvalidClassIndex(f"No label for class_index {det.class_index} (label store has {len(labels)} entries)")
        out.append(
            LabeledDetection(
                detection=det,
                class_name=labels[det.class_index],
                color=color_fn(det.class_index),
            )
        )
    return out
