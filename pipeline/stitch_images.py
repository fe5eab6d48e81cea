# pipeline/stitch_images.py
import concurrent.futures
import logging
import os
import threading
from typing import List, Optional, Sequence

from dotenv import load_dotenv

from models.raster_image import RasterImage
from models.separator_style import SeparatorStyle
from models.composite_canvas import CompositeCanvas
from models.stitch_result import StitchResult
from models.errors import EmptyInputError, StitchCancelledError
from services.overlap_service import OverlapService
from services.compositor_service import CompositorService
from services.image_service import ImageService

# ------------------------------------------------------------------
# env‑vars
load_dotenv()
MAX_WORKERS = int(os.getenv("STITCH_MAX_WORKERS", "1"))

logger = logging.getLogger(__name__)


def _check_cancelled(cancel_event: Optional[threading.Event], stage: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.info(f"Stitch cancelled {stage}")
        raise StitchCancelledError(f"Stitch cancelled {stage}")


def compute_overlaps(
    images: Sequence[RasterImage],
    crop_height: int = 0,
    *,
    overlap_service: Optional[OverlapService] = None,
    compositor_service: Optional[CompositorService] = None,
    max_workers: int = MAX_WORKERS,
    cancel_event: Optional[threading.Event] = None,
) -> List[int]:
    """
    Overlap table for *images*: element 0 is 0, element i is the overlap
    between image i-1 and image i after the header crop.

    Detected overlaps are clamped to the previous image's effective height,
    which only bites when a large crop leaves that image shorter than the match.
    """
    overlap_service = overlap_service or OverlapService()
    compositor_service = compositor_service or CompositorService()
    pairs = range(1, len(images))

    def _detect(i: int) -> int:
        _check_cancelled(cancel_event, f"before pair {i - 1}/{i}")
        return overlap_service.detect_overlap(images[i - 1], images[i], crop_height)

    if max_workers > 1 and len(pairs) > 1:
        detected = {}
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_pair = {executor.submit(_detect, i): i for i in pairs}
            try:
                for future in concurrent.futures.as_completed(future_to_pair):
                    detected[future_to_pair[future]] = future.result()
            except StitchCancelledError:
                for future in future_to_pair:
                    future.cancel()
                raise
        raw = [detected[i] for i in pairs]
    else:
        raw = [_detect(i) for i in pairs]

    overlaps = [0]
    for i, overlap in zip(pairs, raw):
        bound = compositor_service.effective_height(images[i - 1], i - 1, crop_height)
        if overlap > bound:
            logger.warning(f"Clamping overlap {i - 1}/{i} from {overlap} to {bound} rows")
            overlap = bound
        logger.info(f"Overlap {i - 1}/{i} ({images[i - 1].name} → {images[i].name}): {overlap}px")
        overlaps.append(overlap)
    return overlaps


def stitch_images(
    images: Sequence[RasterImage],
    *,
    crop_height: int = 0,
    separator: SeparatorStyle = SeparatorStyle.none(),
    overlap_service: Optional[OverlapService] = None,
    compositor_service: Optional[CompositorService] = None,
    max_workers: int = MAX_WORKERS,
    cancel_event: Optional[threading.Event] = None,
) -> CompositeCanvas:
    """
    Detect overlaps between consecutive *images* and composite them into one canvas.

    Raises EmptyInputError for an empty sequence; see ``stitch_to_png`` for the
    permissive variant.
    """
    if not images:
        raise EmptyInputError("No images to stitch")
    if crop_height < 0:
        raise ValueError(f"crop_height must be non-negative, got {crop_height}")

    compositor_service = compositor_service or CompositorService()
    overlaps = compute_overlaps(
        images,
        crop_height,
        overlap_service=overlap_service,
        compositor_service=compositor_service,
        max_workers=max_workers,
        cancel_event=cancel_event,
    )
    _check_cancelled(cancel_event, "before painting")
    return compositor_service.stitch(images, overlaps, crop_height, separator)


def stitch_to_png(
    images: Sequence[RasterImage],
    *,
    crop_height: int = 0,
    separator: SeparatorStyle = SeparatorStyle.none(),
    image_service: Optional[ImageService] = None,
    overlap_service: Optional[OverlapService] = None,
    compositor_service: Optional[CompositorService] = None,
    max_workers: int = MAX_WORKERS,
    cancel_event: Optional[threading.Event] = None,
) -> StitchResult:
    """
    Stitch and encode as PNG. An empty sequence yields ``StitchResult.empty()``.
    """
    image_service = image_service or ImageService()
    try:
        canvas = stitch_images(
            images,
            crop_height=crop_height,
            separator=separator,
            overlap_service=overlap_service,
            compositor_service=compositor_service,
            max_workers=max_workers,
            cancel_event=cancel_event,
        )
    except EmptyInputError:
        logger.info("No images supplied; returning empty result")
        return StitchResult.empty()

    return StitchResult(
        png=image_service.encode_png(canvas),
        width=canvas.width,
        height=canvas.height,
        overlaps=list(canvas.overlaps),
    )
