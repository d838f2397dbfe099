from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

import numpy as np

from .postprocess import PostConfig, Postprocessor
from .preprocess import prepare_input
from .types import FrameResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
InferFn = Callable[[np.ndarray], Union[np.ndarray, Sequence[np.ndarray]]]


def resolve_path(path: PathLike, root: Optional[PathLike] = None) -> Path:
    """
    Absolute paths are returned as-is; relative ones resolve against `root`
    (current directory when None).
    """

    p = Path(path)
    if p.is_absolute():
        return p
    base = Path(root).resolve() if root is not None else Path.cwd()
    return (base / p).resolve()


class FramePipeline:
    """
    Per-frame pipeline: prepare input -> inference -> post-process.

    The inference engine is not reentrant, so `infer_fn` runs under a lock:
    concurrent callers are serialised rather than interleaved. Callers
    feeding a live stream should drop stale frames instead of queueing them.
    """

    def __init__(
        self,
        infer_fn: InferFn,
        *,
        post_cfg: PostConfig = PostConfig(),
        output_index: int = 0,
        output_names: Optional[Sequence[str]] = None,
        channel_order: str = "bgr",
        quantized: bool = False,
    ):
        self._infer_fn = infer_fn
        self._lock = threading.Lock()
        self.post = Postprocessor(post_cfg)
        self.output_index = output_index
        self.output_names = list(output_names) if output_names is not None else None
        self.channel_order = channel_order
        self.quantized = quantized

    @property
    def input_size(self):
        return self.post.cfg.input_size

    def _split_outputs(self, outputs: Union[np.ndarray, Sequence[np.ndarray]]):
        if isinstance(outputs, np.ndarray):
            outputs = [outputs]
        outputs = list(outputs)
        if not 0 <= self.output_index < len(outputs):
            raise IndexError(f"output_index {self.output_index} out of range for {len(outputs)} model outputs")

        names: List[str] = self.output_names or [f"output_{i}" for i in range(len(outputs))]
        extras = {
            names[i] if i < len(names) else f"output_{i}": out
            for i, out in enumerate(outputs)
            if i != self.output_index
        }
        return outputs[self.output_index], extras

    def __call__(self, frame: np.ndarray) -> FrameResult:
        if frame is None or not hasattr(frame, "shape"):
            raise TypeError("frame must be a NumPy array.")
        if frame.ndim != 3:
            raise ValueError(f"Expected frame shape (H, W, C), got {frame.shape}")
        img_h, img_w = frame.shape[:2]
        blob = prepare_input(
            frame,
            self.input_size,
            channel_order=self.channel_order,
            quantized=self.quantized,
        )

        with self._lock:
            start = time.perf_counter()
            outputs = self._infer_fn(blob)
            elapsed_ms = (time.perf_counter() - start) * 1000.0

        preds, extras = self._split_outputs(outputs)
        detections = self.post.process(preds, image_size=(img_w, img_h))
        return FrameResult(inference_time_ms=elapsed_ms, detections=detections, extra_outputs=extras)


def load_pipeline(
    model_path: PathLike,
    *,
    root: Optional[PathLike] = None,
    post_cfg: PostConfig = PostConfig(),
    output_index: int = 0,
    channel_order: str = "bgr",
    onnx_providers: Optional[Sequence[str]] = None,
    threads: Optional[int] = None,
) -> FramePipeline:
    """
    Create a pipeline for an ONNX model on disk.

        pipe = load_pipeline("models/yolov3-tiny.onnx")
        result = pipe(frame_bgr)
    """

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    resolved = resolve_path(model_path, root=root)
    if resolved.suffix.lower() != ".onnx":
        raise ValueError(f"Only .onnx models are supported, got '{resolved.suffix}'")

    backend = OnnxRuntimeBackend(resolved, OnnxRuntimeBackendConfig(providers=onnx_providers, threads=threads))
    logger.info("Pipeline ready: %s, input %s, %d classes", resolved.name, post_cfg.input_size, post_cfg.num_classes)
    return FramePipeline(
        backend.infer,
        post_cfg=post_cfg,
        output_index=output_index,
        output_names=backend.output_names,
        channel_order=channel_order,
        quantized=backend.input_is_quantized,
    )
