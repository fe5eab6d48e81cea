from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import numpy as np


@dataclass(frozen=True, eq=False)
class RasterImage:
    """
    Decoded screenshot: RGB or RGBA pixels (+ optional source path for bookkeeping).
    Holds a read-only copy of the pixel buffer; the caller's array stays writable.
    Compared by identity.
    """
    pixels: np.ndarray  # Shape (H, W, 3|4), dtype uint8, RGB(A) order.
    path: Path | None = None  # Source of the image.

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] not in (3, 4):
            raise ValueError(f"Expected (H, W, 3|4) pixels, got shape {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {self.pixels.dtype}")
        pixels = self.pixels.copy()
        pixels.flags.writeable = False
        object.__setattr__(self, "pixels", pixels)

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def has_alpha(self) -> bool:
        return self.pixels.shape[2] == 4

    @property
    def name(self) -> str:
        return self.path.name if self.path else "<memory>"
