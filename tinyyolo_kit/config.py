from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .postprocess import PostConfig

PathLike = Union[str, Path]

_ALLOWED_KEYS = {
    "num_anchors",
    "num_classes",
    "objectness_threshold",
    "confidence_threshold",
    "iou_threshold",
    "input_size",
    "byte_order",
    "max_detections",
}


def _number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _optional_int(payload: Dict[str, Any], key: str) -> Optional[int]:
    if payload[key] is None:
        return None
    return _int(payload, key)


def _size(payload: Dict[str, Any], key: str) -> Tuple[int, int]:
    value = payload[key]
    if (
        not isinstance(value, (list, tuple))
        or len(value) != 2
        or any(isinstance(v, bool) or not isinstance(v, int) for v in value)
    ):
        raise ValueError(f"{key} must be a [width, height] pair of integers")
    return int(value[0]), int(value[1])


def post_config_from_dict(payload: Dict[str, Any]) -> PostConfig:
    """
    Build a PostConfig from a plain mapping. Missing keys keep their defaults,
    unknown keys are rejected.
    """

    unknown = sorted(set(payload.keys()) - _ALLOWED_KEYS)
    if unknown:
        raise ValueError(f"Unknown post-processing config keys: {unknown}")

    kwargs: Dict[str, Any] = {}
    if "num_anchors" in payload:
        kwargs["num_anchors"] = _optional_int(payload, "num_anchors")
    if "num_classes" in payload:
        kwargs["num_classes"] = _int(payload, "num_classes")
    for key in ("objectness_threshold", "confidence_threshold", "iou_threshold"):
        if key in payload:
            kwargs[key] = _number(payload, key)
    if "input_size" in payload:
        kwargs["input_size"] = _size(payload, "input_size")
    if "byte_order" in payload:
        if not isinstance(payload["byte_order"], str):
            raise ValueError("byte_order must be a string")
        kwargs["byte_order"] = payload["byte_order"]
    if "max_detections" in payload:
        kwargs["max_detections"] = _optional_int(payload, "max_detections")

    return PostConfig(**kwargs)


def load_post_config(path: PathLike) -> PostConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Post-processing config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid post-processing config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Post-processing config must be a JSON object")
    return post_config_from_dict(payload)
