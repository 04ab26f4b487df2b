"""Unit tests for slicer.py: run with python -m pytest test_slicer.py"""

import json

import pytest
from PIL import Image

import slicer
from nines import Dimensions, Layout, NinesError, Rect, Scale, Style
from slicer import crop_box, layout_table, slice_image, source_dimensions


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _make_img(w: int = 100, h: int = 80) -> Image.Image:
    """Return a solid-colour RGBA test image."""
    return Image.new("RGBA", (w, h), (255, 0, 0, 255))


def _borders(left: int, right: int, top: int, bottom: int) -> Rect:
    return Rect(left=left, right=right, top=top, bottom=bottom)


# ---------------------------------------------------------------------------
# Source dimensions
# ---------------------------------------------------------------------------
class TestSourceDimensions:
    def test_valid(self):
        dims = source_dimensions(_make_img(), _borders(10, 20, 15, 25))
        assert dims.outer == Rect.xywh(0, 0, 100, 80)
        assert dims.inner == Rect(left=10, right=80, top=15, bottom=55)
        assert dims.borders() == _borders(10, 20, 15, 25)

    def test_negative(self):
        with pytest.raises(NinesError, match="outer.left ≤ inner.left"):
            source_dimensions(_make_img(), _borders(-1, 0, 0, 0))

    def test_exceeds_width(self):
        with pytest.raises(NinesError, match="inner.left ≤ inner.right"):
            source_dimensions(_make_img(), _borders(60, 60, 0, 0))

    def test_exceeds_height(self):
        with pytest.raises(NinesError, match="inner.top ≤ inner.bottom"):
            source_dimensions(_make_img(), _borders(0, 0, 50, 50))

    def test_exact_fit(self):
        dims = source_dimensions(_make_img(), _borders(50, 50, 40, 40))
        assert dims.inner.size() == (0, 0)


# ---------------------------------------------------------------------------
# Crop boxes
# ---------------------------------------------------------------------------
class TestCropBox:
    def test_pil_order(self):
        assert crop_box(Rect.xywh(10, 15, 70, 40).validate()) == (10, 15, 80, 55)


# ---------------------------------------------------------------------------
# Slicing
# ---------------------------------------------------------------------------
class TestSliceImage:
    def test_slice_names(self):
        dims = source_dimensions(_make_img(), _borders(10, 20, 15, 25))
        slices = slice_image(_make_img(), dims)
        assert list(slices) == slicer.SLICE_NAMES

    def test_slice_sizes(self):
        img = _make_img(100, 80)
        slices = slice_image(img, source_dimensions(img, _borders(10, 20, 15, 25)))
        assert slices["corner_tl"].size == (10, 15)
        assert slices["edge_top"].size == (70, 15)
        assert slices["edge_left"].size == (10, 40)
        assert slices["center"].size == (70, 40)
        assert slices["corner_br"].size == (20, 25)

    def test_slice_pixels(self):
        img = _make_img(3, 3)
        img.putpixel((1, 1), (0, 255, 0, 255))
        slices = slice_image(img, source_dimensions(img, _borders(1, 1, 1, 1)))
        assert slices["center"].getpixel((0, 0)) == (0, 255, 0, 255)
        assert slices["corner_tl"].getpixel((0, 0)) == (255, 0, 0, 255)

    def test_zero_borders_gives_degenerate_corners(self):
        img = _make_img(100, 80)
        slices = slice_image(img, source_dimensions(img, _borders(0, 0, 0, 0)))
        assert slices["corner_tl"].size == (0, 0)
        assert slices["center"].size == (100, 80)


# ---------------------------------------------------------------------------
# Layout table
# ---------------------------------------------------------------------------
class TestLayoutTable:
    def _layout(self, style=None):
        img = _make_img(100, 80)
        src = source_dimensions(img, _borders(10, 20, 15, 25))
        dst = src.with_outer(Rect.xywh(0, 0, 300, 200))
        return Layout(dst=dst, src=src, style=style or Style())

    def test_slices(self):
        table = layout_table(self._layout())
        assert list(table["slices"]) == slicer.SLICE_NAMES
        assert table["slices"]["center"] == {
            "dst": {"x": 10, "y": 15, "w": 270, "h": 160},
            "src": {"x": 10, "y": 15, "w": 70, "h": 40},
        }
        assert table["slices"]["corner_br"]["dst"] == {"x": 280, "y": 175, "w": 20, "h": 25}

    def test_style(self):
        table = layout_table(self._layout())
        assert table["style"] == {
            "border": {"left": "stretch", "right": "stretch", "top": "stretch", "bottom": "stretch"},
            "center": {"horizontal": "stretch", "vertical": "stretch"},
        }

    def test_json_serializable(self):
        data = json.loads(json.dumps(layout_table(self._layout())))
        assert data["slices"]["edge_top"]["src"] == {"x": 10, "y": 0, "w": 70, "h": 15}

    def test_validates_raw_layout(self):
        raw = Layout(
            dst=Dimensions(outer=Rect.xywh(0, 0, 5, 4), inner=Rect.xywh(1, 1, 3, 2)),
            src=Dimensions(outer=Rect.xywh(0, 0, 3, 3), inner=Rect.xywh(1, 1, 1, 1)),
        )
        assert layout_table(raw)["slices"]["edge_right"]["dst"] == {"x": 4, "y": 1, "w": 1, "h": 2}

    def test_invalid_raw_layout(self):
        raw = Layout(
            dst=Dimensions(outer=Rect.xywh(0, 0, 1, 1), inner=Rect.xywh(0, 0, 2, 2)),
            src=Dimensions(outer=Rect.xywh(0, 0, 1, 1), inner=Rect.xywh(0, 0, 1, 1)),
        )
        with pytest.raises(NinesError):
            layout_table(raw)

    def test_non_stretch_style(self):
        with pytest.raises(NotImplementedError):
            layout_table(self._layout(Style.new(Scale.SPACE)))
