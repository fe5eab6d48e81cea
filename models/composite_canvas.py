from __future__ import annotations
from dataclasses import dataclass, field
from typing import List
import numpy as np


@dataclass(frozen=True)
class Placement:
    """Where one source image landed on the canvas."""
    index: int
    x: int
    y: int
    source_top: int  # first source row painted (the header crop, or 0)
    rows: int        # number of source rows painted


@dataclass
class CompositeCanvas:
    """
    Output of the compositor: RGBA pixels plus the layout that produced them.
    """
    pixels: np.ndarray  # Shape (H, W, 4), dtype uint8.
    placements: List[Placement] = field(default_factory=list)
    overlaps: List[int] = field(default_factory=list)

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])
