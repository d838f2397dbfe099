import argparse
import logging
import statistics
from typing import Iterator, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from tinyyolo_kit import (
    FrameResult,
    PostConfig,
    caption,
    check_label_store,
    draw_detections,
    load_labels,
    load_pipeline,
    load_post_config,
)

logger = logging.getLogger("detect_frames")


def _iter_frames(args: argparse.Namespace) -> Iterator[Tuple[int, np.ndarray, float]]:
    """
    Yield (frame_idx, frame_bgr, source_fps) from the image, video or webcam,
    honouring --every and --max-frames.
    """

    if args.image is not None:
        img = cv2.imread(args.image)
        if img is None:
            raise FileNotFoundError(f"Could not read image at path: {args.image}")
        yield 1, img, 0.0
        return

    if args.video is not None:
        cap = cv2.VideoCapture(args.video)
        if not cap.isOpened():
            raise FileNotFoundError(f"Could not open video: {args.video}")
    else:
        cam_index = 0 if args.webcam is None else int(args.webcam)
        cap = cv2.VideoCapture(cam_index)
        if not cap.isOpened():
            raise RuntimeError(f"Could not open webcam index: {cam_index}")

    fps = cap.get(cv2.CAP_PROP_FPS) or 0.0
    frame_idx = 0
    yielded = 0
    try:
        while True:
            ok, frame = cap.read()
            if not ok or frame is None:
                break
            frame_idx += 1
            # Frames are skipped, never queued, so a slow model falls behind gracefully.
            if (frame_idx - 1) % args.every != 0:
                continue
            yield frame_idx, frame, fps
            yielded += 1
            if args.max_frames and yielded >= args.max_frames:
                break
    finally:
        cap.release()


def _report(frame_idx: int, result: FrameResult, labels: Optional[Sequence[str]]) -> None:
    print(f"frame {frame_idx}: {len(result.detections)} detections, inference {result.inference_time_ms:.1f} ms")
    for det in result.detections:
        x1, y1, x2, y2 = det.as_xyxy()
        print(f"  {caption(det, labels)}  [{x1:.0f}, {y1:.0f}, {x2:.0f}, {y2:.0f}]")


def main() -> int:
    parser = argparse.ArgumentParser(description="Run YOLOv3-tiny detection on an image, video or webcam.")
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--image", default=None, help="Path to an input image.")
    src.add_argument("--video", default=None, help="Path to an input video file.")
    src.add_argument("--webcam", type=int, default=None, help="Webcam index (e.g., 0).")
    parser.add_argument("--model", default="Models/yolov3-tiny.onnx", help="Path to an ONNX model.")
    parser.add_argument("--labels", default=None, help="Optional .names file (one label per line).")
    parser.add_argument("--config", default=None, help="Optional JSON post-processing config.")
    parser.add_argument("--output-index", type=int, default=0, help="Which model output holds the anchor records.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--threads", type=int, default=None, help="ORT intra-op thread count.")
    parser.add_argument("--show", action="store_true", help="Show a window with visualized detections.")
    parser.add_argument("--out", default=None, help="Optional output path (image or video) to save the visualization.")
    parser.add_argument("--every", type=int, default=1, help="Process every Nth frame for video/webcam.")
    parser.add_argument("--max-frames", type=int, default=0, help="Stop after N frames (0 = no limit).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    single_image = args.image is not None
    if not single_image and args.video is None and args.webcam is None:
        parser.error("one of --image, --video or --webcam is required")
    if args.every < 1:
        raise ValueError("--every must be >= 1")
    if args.max_frames < 0:
        raise ValueError("--max-frames must be >= 0")

    post_cfg = load_post_config(args.config) if args.config else PostConfig()
    labels: Optional[List[str]] = None
    if args.labels:
        labels = load_labels(args.labels)
        check_label_store(labels, post_cfg.num_classes)

    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    pipeline = load_pipeline(
        model_path=args.model,
        post_cfg=post_cfg,
        output_index=args.output_index,
        onnx_providers=onnx_providers,
        threads=args.threads,
    )

    writer = None
    timings_ms: List[float] = []
    counts: List[int] = []
    try:
        for frame_idx, frame, fps in _iter_frames(args):
            result = pipeline(frame)
            timings_ms.append(result.inference_time_ms)
            counts.append(len(result.detections))
            _report(frame_idx, result, labels)

            if not (args.out or args.show):
                continue
            vis = draw_detections(frame, result.detections, labels=labels, inference_time_ms=result.inference_time_ms)

            if args.out and single_image:
                if not cv2.imwrite(args.out, vis):
                    raise RuntimeError(f"Failed to write output image: {args.out}")
            elif args.out:
                if writer is None:
                    h, w = vis.shape[:2]
                    writer = cv2.VideoWriter(args.out, cv2.VideoWriter_fourcc(*"mp4v"), fps if fps > 0 else 30.0, (w, h))
                    if not writer.isOpened():
                        raise RuntimeError(f"Failed to open video writer: {args.out}")
                writer.write(vis)

            if args.show:
                cv2.imshow("detections", vis)
                key = cv2.waitKey(0 if single_image else 1) & 0xFF
                if key in (27, ord("q")):
                    break
    finally:
        if writer is not None:
            writer.release()
        if args.show:
            cv2.destroyAllWindows()

    if timings_ms:
        logger.info(
            "%d frames, mean inference %.1f ms (median %.1f ms), mean %.1f detections/frame",
            len(timings_ms),
            statistics.fmean(timings_ms),
            statistics.median(timings_ms),
            statistics.fmean(counts),
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
