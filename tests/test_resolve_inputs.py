"""
Tests for caller-side input resolution and the small value objects.
"""
import numpy as np
import pytest

from models.analysis import AnalysisIssue, AnalysisResult, IssueType
from models.raster_image import RasterImage
from models.separator_style import SeparatorStyle
from pipeline.resolve_inputs import (
    drop_flagged_images,
    issues_of_type,
    resolve_header_height,
    similarity_duplicates,
    sort_by_name,
)


@pytest.mark.parametrize("manual, suggested, expected", [
    (40, 64, 40),
    (0, 64, 64),
    (None, 64, 64),
    (-3, 64, 64),
    (0, 0, 0),
    (0, None, 0),
    (0, -10, 0),
])
def test_resolve_header_height(manual, suggested, expected):
    assert resolve_header_height(manual, suggested) == expected


def test_drop_flagged_images_keeps_order():
    assert drop_flagged_images(["a", "b", "c", "d"], [1, 3, 1]) == ["a", "c"]


def test_drop_nothing():
    assert drop_flagged_images(["a", "b"], []) == ["a", "b"]


def test_drop_out_of_range():
    with pytest.raises(IndexError):
        drop_flagged_images(["a", "b"], [2])


def test_sort_by_name():
    assert sort_by_name(["image_10", "image_2", "image_1"]) == ["image_1", "image_2", "image_10"]


class TestAnalysisResult:

    payload = {
        "issues": [
            {"type": "GAP", "indices": [0, 1], "reason": "content missing"},
            {"type": "SIMILARITY", "indices": [2, 3], "reason": "duplicate"},
            {"type": "SIMILARITY", "indices": [3, 4], "reason": "duplicate"},
        ],
        "commonHeaderHeight": 72,
    }

    def test_from_dict(self):
        result = AnalysisResult.from_dict(self.payload)
        assert result.common_header_height == 72
        assert result.issues[0] == AnalysisIssue(IssueType.GAP, (0, 1), "content missing")

    def test_missing_fields_default(self):
        result = AnalysisResult.from_dict({})
        assert result.issues == []
        assert result.common_header_height == 0

    def test_issue_filters(self):
        result = AnalysisResult.from_dict(self.payload)
        assert len(issues_of_type(result, IssueType.GAP)) == 1
        assert similarity_duplicates(result) == [3, 4]

    @pytest.mark.parametrize("issue", [
        {"type": "BLUR", "indices": [0, 1]},
        {"type": "GAP", "indices": [0, 1, 2]},
        {"type": "GAP"},
    ])
    def test_invalid_issue(self, issue):
        with pytest.raises((ValueError, KeyError)):
            AnalysisIssue.from_dict(issue)


class TestSeparatorStyle:

    def test_from_hex(self):
        assert SeparatorStyle.from_hex(3, "#4B5563").color == (0x4B, 0x55, 0x63)
        assert SeparatorStyle.from_hex(3, "ff0000").color == (255, 0, 0)

    @pytest.mark.parametrize("color", ["#12345", "#GGGGGG", ""])
    def test_bad_hex(self, color):
        with pytest.raises(ValueError):
            SeparatorStyle.from_hex(3, color)

    def test_negative_height(self):
        with pytest.raises(ValueError):
            SeparatorStyle(height_px=-1)

    def test_enabled(self):
        assert SeparatorStyle(3).enabled
        assert not SeparatorStyle.none().enabled


class TestRasterImage:

    def test_dimensions(self):
        img = RasterImage(np.zeros((7, 5, 4), dtype=np.uint8))
        assert (img.width, img.height, img.has_alpha) == (5, 7, True)

    @pytest.mark.parametrize("pixels", [
        np.zeros((4, 4), dtype=np.uint8),
        np.zeros((4, 4, 2), dtype=np.uint8),
        np.zeros((4, 4, 3), dtype=np.float32),
    ])
    def test_rejects_bad_buffers(self, pixels):
        with pytest.raises(ValueError):
            RasterImage(pixels)

    def test_copies_caller_buffer(self):
        pixels = np.zeros((4, 4, 3), dtype=np.uint8)
        img = RasterImage(pixels)
        pixels[0, 0] = 255
        assert pixels.flags.writeable
        assert not img.pixels.flags.writeable
        assert img.pixels[0, 0].tolist() == [0, 0, 0]

    def test_compared_by_identity(self):
        pixels = np.zeros((4, 4, 3), dtype=np.uint8)
        a, b = RasterImage(pixels), RasterImage(pixels)
        assert a == a
        assert a != b
