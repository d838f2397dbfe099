"""
Post-processing for anchor-based single-shot detectors (YOLOv3-tiny style).

Turns the flat per-frame output buffer into ranked, per-class de-duplicated
detections in source image coordinates. The core needs only NumPy; OpenCV is
used for input preparation and drawing, ONNX Runtime for the optional backend.
"""

from .errors import InvalidClassIndex, ShapeMismatch
from .types import Candidate, Detection, FrameResult, LabeledDetection, Rect
from .decode import anchor_records, decode_candidates, floats_from_bytes
from .filters import filter_by_confidence
from .nms import iou, non_max_suppression, suppress
from .mapping import map_detections, map_rect
from .rank import rank_detections
from .postprocess import PostConfig, Postprocessor
from .config import load_post_config, post_config_from_dict
from .labels import attach_labels, check_label_store, load_labels
from .visualize import caption, color_for_class, draw_detections
from .preprocess import prepare_input
from .runtime import FramePipeline, load_pipeline

__all__ = [
    "InvalidClassIndex",
    "ShapeMismatch",
    "Candidate",
    "Detection",
    "FrameResult",
    "LabeledDetection",
    "Rect",
    "anchor_records",
    "decode_candidates",
    "floats_from_bytes",
    "filter_by_confidence",
    "iou",
    "non_max_suppression",
    "suppress",
    "map_detections",
    "map_rect",
    "rank_detections",
    "PostConfig",
    "Postprocessor",
    "load_post_config",
    "post_config_from_dict",
    "attach_labels",
    "check_label_store",
    "load_labels",
    "caption",
    "color_for_class",
    "draw_detections",
    "prepare_input",
    "FramePipeline",
    "load_pipeline",
]
