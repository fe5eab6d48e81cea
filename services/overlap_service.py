import logging
import os
import numpy as np
from dotenv import load_dotenv
from models.raster_image import RasterImage

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class OverlapService:
    """
    Finds how many rows at the bottom of one screenshot repeat at the top of the next.

    Scanning starts at the middle of the top image and walks down; the first
    confirmed candidate row wins. A candidate is confirmed when a block of
    ``min_confirm_rows`` consecutive rows all match; a row matches when no more
    than ``row_diff_tolerance`` of its pixels differ in any RGB channel.
    """

    def __init__(self, min_confirm_rows: int | None = None, row_diff_tolerance: float | None = None):
        self.min_confirm_rows = int(min_confirm_rows if min_confirm_rows is not None
                                    else os.getenv("MIN_CONFIRM_ROWS", "15"))
        self.row_diff_tolerance = float(row_diff_tolerance if row_diff_tolerance is not None
                                        else os.getenv("ROW_DIFF_TOLERANCE", "0.01"))
        if self.min_confirm_rows < 1:
            raise ValueError(f"min_confirm_rows must be >= 1, got {self.min_confirm_rows}")
        if not 0.0 <= self.row_diff_tolerance < 1.0:
            raise ValueError(f"row_diff_tolerance must be in [0, 1), got {self.row_diff_tolerance}")

    @staticmethod
    def _rows_differing(top_rows: np.ndarray, bottom_rows: np.ndarray) -> np.ndarray:
        """
        Args:
            top_rows, bottom_rows (np.ndarray): (R, W, 3) RGB blocks of equal shape.

        Returns:
            (np.ndarray): (R,) count of pixels per row that differ in any channel.
        """
        return np.count_nonzero(np.any(top_rows != bottom_rows, axis=2), axis=1)

    def _block_matches(self, top_rgb: np.ndarray, bottom_rgb: np.ndarray, y1: int, limit: float) -> bool:
        rows = self.min_confirm_rows
        # single-row probe rejects most candidates before the full block compare
        if self._rows_differing(top_rgb[y1:y1 + 1], bottom_rgb[0:1])[0] > limit:
            return False
        counts = self._rows_differing(top_rgb[y1:y1 + rows], bottom_rgb[0:rows])
        return bool(np.all(counts <= limit))

    def detect_overlap(self, top: RasterImage, bottom: RasterImage, crop_height: int = 0) -> int:
        """
        Args:
            top (RasterImage): The earlier screenshot; never cropped.
            bottom (RasterImage): The next screenshot.
            crop_height (int): Header rows stripped from the top of *bottom* before comparing.

        Returns:
            (int): Overlapping rows, or 0 when none can be confirmed.
        """
        if crop_height < 0:
            raise ValueError(f"crop_height must be non-negative, got {crop_height}")

        width = min(top.width, bottom.width)
        if width == 0:
            return 0

        bottom_height = bottom.height - crop_height
        if bottom_height <= 0:
            logger.warning(
                f"Header crop {crop_height}px consumes all of {bottom.name} "
                f"({bottom.height}px); treating as no overlap"
            )
            return 0

        rows = self.min_confirm_rows
        if top.height < rows or bottom_height < rows:
            return 0

        # Views only: RGB channels, common width, cropped bottom.
        top_rgb = top.pixels[:, :width, :3]
        bottom_rgb = bottom.pixels[crop_height:, :width, :3]
        limit = width * self.row_diff_tolerance

        start = max(top.height // 2, top.height - bottom_height)
        stop = top.height - rows
        for y1 in range(start, stop + 1):
            if self._block_matches(top_rgb, bottom_rgb, y1, limit):
                overlap = top.height - y1
                logger.debug(f"Overlap {top.name} → {bottom.name}: {overlap}px (y1={y1})")
                return overlap

        logger.debug(f"No overlap {top.name} → {bottom.name} (searched rows {start}..{stop})")
        return 0
