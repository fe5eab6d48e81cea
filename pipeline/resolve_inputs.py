# pipeline/resolve_inputs.py
import logging
from typing import Iterable, List, Optional, Sequence, TypeVar

from models.analysis import AnalysisIssue, AnalysisResult, IssueType
from repositories.image_repository import natural_sort_key

logger = logging.getLogger(__name__)

T = TypeVar("T")


def resolve_header_height(manual: Optional[int] = 0, suggested: Optional[int] = 0) -> int:
    """
    Pick the header crop: the user's manual selection wins if positive,
    otherwise the analysis suggestion if positive, otherwise 0.
    """
    if manual and manual > 0:
        return int(manual)
    if suggested and suggested > 0:
        return int(suggested)
    return 0


def sort_by_name(names: Iterable[str]) -> List[str]:
    """Order filenames the way screenshots are numbered: 1, 2, ..., 10."""
    return sorted(names, key=natural_sort_key)


def drop_flagged_images(items: Sequence[T], remove_indices: Iterable[int]) -> List[T]:
    """
    Return *items* without the positions the user chose to discard.
    Indices refer to the original order; duplicates are ignored.
    """
    to_remove = set(remove_indices)
    for idx in to_remove:
        if not 0 <= idx < len(items):
            raise IndexError(f"Cannot remove image {idx}: only {len(items)} images")
    if to_remove:
        logger.info(f"Removing images at positions {sorted(to_remove)}")
    return [item for i, item in enumerate(items) if i not in to_remove]


def issues_of_type(analysis: AnalysisResult, issue_type: IssueType) -> List[AnalysisIssue]:
    return [issue for issue in analysis.issues if issue.type == issue_type]


def similarity_duplicates(analysis: AnalysisResult) -> List[int]:
    """
    Second image of every SIMILARITY pair: the one a user keeping the first
    would remove. Offered as a default; the caller decides.
    """
    return sorted({issue.indices[1] for issue in issues_of_type(analysis, IssueType.SIMILARITY)})
