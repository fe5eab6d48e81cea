from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple


class IssueType(str, Enum):
    GAP = "GAP"                # visual discontinuity, content likely missing
    SIMILARITY = "SIMILARITY"  # consecutive near-duplicates


@dataclass(frozen=True)
class AnalysisIssue:
    """
    One problem flagged by the external analysis service between two images.
    Carried through untouched; the engine never interprets it.
    """
    type: IssueType
    indices: Tuple[int, int]
    reason: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisIssue":
        indices = tuple(int(i) for i in data["indices"])
        if len(indices) != 2:
            raise ValueError(f"Issue indices must be a pair, got {data['indices']!r}")
        return cls(type=IssueType(data["type"]), indices=indices, reason=str(data.get("reason", "")))


@dataclass
class AnalysisResult:
    """Issues plus the suggested common header height (0 when none was found)."""
    issues: List[AnalysisIssue] = field(default_factory=list)
    common_header_height: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisResult":
        issues = [AnalysisIssue.from_dict(item) for item in data.get("issues") or []]
        return cls(issues=issues, common_header_height=int(data.get("commonHeaderHeight") or 0))
