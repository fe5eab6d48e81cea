from __future__ import annotations
from dataclasses import dataclass, field
from typing import List


@dataclass
class StitchResult:
    """
    Encoded stitch output handed back to hosts (API, CLI).
    """
    png: bytes          # PNG byte stream, b"" for the empty result
    width: int
    height: int
    overlaps: List[int] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "StitchResult":
        return cls(png=b"", width=0, height=0)

    @property
    def is_empty(self) -> bool:
        return not self.png
