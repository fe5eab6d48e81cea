from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

DEFAULT_SEPARATOR_COLOR = "#4B5563"  # slate grey


@dataclass(frozen=True)
class SeparatorStyle:
    """
    Value-object for the band painted at seams (joins with no confirmed overlap).
    height_px == 0 disables separators entirely.
    """
    height_px: int = 0
    color: Tuple[int, int, int] = (0x4B, 0x55, 0x63)

    def __post_init__(self):
        if self.height_px < 0:
            raise ValueError(f"Separator height must be non-negative, got {self.height_px}")
        if len(self.color) != 3 or any(not 0 <= c <= 255 for c in self.color):
            raise ValueError(f"Separator color must be an RGB triple, got {self.color}")

    @property
    def enabled(self) -> bool:
        return self.height_px > 0

    @classmethod
    def from_hex(cls, height_px: int, color: str = DEFAULT_SEPARATOR_COLOR) -> "SeparatorStyle":
        """Create a style from a '#RRGGBB' (or 'RRGGBB') color string."""
        value = color.strip().lstrip("#")
        if len(value) != 6:
            raise ValueError(f"Invalid hex color: {color!r}")
        try:
            rgb = tuple(int(value[i:i + 2], 16) for i in (0, 2, 4))
        except ValueError:
            raise ValueError(f"Invalid hex color: {color!r}") from None
        return cls(height_px=height_px, color=rgb)

    @classmethod
    def none(cls) -> "SeparatorStyle":
        return cls(height_px=0)
