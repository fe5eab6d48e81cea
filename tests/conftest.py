"""
Pytest configuration file for Screenshot Stitcher tests.
"""
import sys
from io import BytesIO
from pathlib import Path

import numpy as np
import pytest
from PIL import Image as PILImage

# Add the parent directory to sys.path to allow importing the top-level packages
sys.path.insert(0, str(Path(__file__).parent.parent))

from models.raster_image import RasterImage


def noise(height: int, width: int, seed: int, channels: int = 3) -> np.ndarray:
    """Random pixels: no two rows coincide by accident."""
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, channels), dtype=np.uint8)


def to_png_bytes(pixels: np.ndarray) -> bytes:
    buffer = BytesIO()
    PILImage.fromarray(pixels).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def make_noise():
    return noise


@pytest.fixture
def png_bytes():
    return to_png_bytes


@pytest.fixture
def overlapping_trio():
    """
    Three 100x50 screenshots. Rows 85-99 of A repeat as rows 0-14 of B;
    B and C share nothing.
    """
    a = noise(100, 50, seed=1)
    b = noise(100, 50, seed=2)
    b[0:15] = a[85:100]
    c = noise(100, 50, seed=3)
    return [RasterImage(a), RasterImage(b), RasterImage(c)]


@pytest.fixture
def cropped_pair():
    """
    Two 200x40 screenshots sharing a 20-row header. Below the header, B's
    rows 20-44 repeat A's last 25 rows.
    """
    a = noise(200, 40, seed=10)
    b = noise(200, 40, seed=11)
    b[0:20] = a[0:20]
    b[20:45] = a[175:200]
    return [RasterImage(a), RasterImage(b)]
