import logging
import os
from typing import List, Sequence, Tuple
import numpy as np
from dotenv import load_dotenv
from models.raster_image import RasterImage
from models.separator_style import SeparatorStyle
from models.composite_canvas import CompositeCanvas, Placement
from models.errors import AllocationError, EmptyInputError, InvalidOverlapError

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class CompositorService:
    """
    Lays out an ordered screenshot sequence on one RGBA canvas and paints it.

    Image 0 is painted whole. Every later image loses its header crop (when it
    is taller than the crop) and is pulled up by its overlap with the previous
    image. Where no overlap was confirmed, an optional separator band is drawn.
    """

    def __init__(self, max_canvas_pixels: int | None = None):
        self.max_canvas_pixels = int(max_canvas_pixels if max_canvas_pixels is not None
                                     else os.getenv("MAX_CANVAS_PIXELS", "400000000"))

    @staticmethod
    def effective_height(image: RasterImage, index: int, crop_height: int) -> int:
        """Rows an image contributes before overlap subtraction."""
        if index > 0 and crop_height > 0 and image.height > crop_height:
            return image.height - crop_height
        return image.height

    @staticmethod
    def x_offset(canvas_width: int, image: RasterImage) -> int:
        return (canvas_width - image.width) // 2

    def validate_overlaps(self, images: Sequence[RasterImage], overlaps: Sequence[int], crop_height: int) -> None:
        if len(overlaps) != len(images):
            raise InvalidOverlapError(f"Expected {len(images)} overlaps, got {len(overlaps)}")
        if overlaps[0] != 0:
            raise InvalidOverlapError(f"overlaps[0] must be 0, got {overlaps[0]}")
        for i in range(1, len(images)):
            bound = min(self.effective_height(images[i - 1], i - 1, crop_height),
                        self.effective_height(images[i], i, crop_height))
            if not 0 <= overlaps[i] <= bound:
                raise InvalidOverlapError(f"overlaps[{i}]={overlaps[i]} outside [0, {bound}]")

    def compute_layout(
        self,
        images: Sequence[RasterImage],
        overlaps: Sequence[int],
        crop_height: int = 0,
        separator: SeparatorStyle = SeparatorStyle.none(),
    ) -> Tuple[int, int]:
        """
        Returns:
            (width, height) of the canvas the sequence needs.
        """
        if not images:
            raise EmptyInputError("No images to stitch")

        width = max(img.width for img in images)
        height = images[0].height
        for i in range(1, len(images)):
            height += self.effective_height(images[i], i, crop_height) - overlaps[i]
            if overlaps[i] == 0 and separator.enabled:
                height += separator.height_px
        return width, height

    def _allocate(self, width: int, height: int) -> np.ndarray:
        if width <= 0 or height <= 0:
            raise AllocationError(f"Cannot allocate a {width}x{height} canvas")
        if width * height > self.max_canvas_pixels:
            raise AllocationError(
                f"Canvas {width}x{height} exceeds the limit of {self.max_canvas_pixels} pixels"
            )
        try:
            return np.zeros((height, width, 4), dtype=np.uint8)
        except (MemoryError, ValueError) as e:
            raise AllocationError(f"Cannot allocate a {width}x{height} canvas: {e}") from e

    @staticmethod
    def _paint(canvas: np.ndarray, image: RasterImage, x: int, y: int, src_top: int, rows: int) -> None:
        src = image.pixels[src_top:src_top + rows]
        dst = canvas[y:y + rows, x:x + image.width]
        dst[..., :3] = src[..., :3]
        dst[..., 3] = src[..., 3] if image.has_alpha else 255

    def stitch(
        self,
        images: Sequence[RasterImage],
        overlaps: Sequence[int],
        crop_height: int = 0,
        separator: SeparatorStyle = SeparatorStyle.none(),
    ) -> CompositeCanvas:
        """
        Paint *images* onto a fresh canvas.

        Raises:
            EmptyInputError: no images.
            InvalidOverlapError: *overlaps* does not describe *images*.
            AllocationError: the canvas is too large to allocate.
        """
        if not images:
            raise EmptyInputError("No images to stitch")
        if crop_height < 0:
            raise ValueError(f"crop_height must be non-negative, got {crop_height}")
        self.validate_overlaps(images, overlaps, crop_height)

        width, height = self.compute_layout(images, overlaps, crop_height, separator)
        canvas = self._allocate(width, height)
        logger.info(f"Compositing {len(images)} images onto {width}x{height} canvas")

        placements: List[Placement] = []
        current_y = 0
        for i, img in enumerate(images):
            rows = self.effective_height(img, i, crop_height)
            src_top = img.height - rows
            x = self.x_offset(width, img)
            y = current_y - overlaps[i]

            self._paint(canvas, img, x, y, src_top, rows)
            placements.append(Placement(index=i, x=x, y=y, source_top=src_top, rows=rows))
            current_y = y + rows

            if i < len(images) - 1 and overlaps[i + 1] == 0 and separator.enabled:
                band = canvas[current_y:current_y + separator.height_px]
                band[..., :3] = separator.color
                band[..., 3] = 255
                current_y += separator.height_px

        return CompositeCanvas(pixels=canvas, placements=placements, overlaps=list(overlaps))
