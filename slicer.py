"""
Image-facing helpers for 9-slice layouts.  Pillow in, geometry out.

The source 9-slice of an image is described by four border thicknesses
(left, right, top, bottom) measured inward from the image edges.  These
helpers turn an image plus borders into validated ``nines`` dimensions, crop
the nine source cells, and describe a whole layout as plain data:

    corner_tl | edge_top    | corner_tr
    ----------+-------------+----------
    edge_left | center      | edge_right
    ----------+-------------+----------
    corner_bl | edge_bottom | corner_br
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from PIL import Image

from nines import Dimensions, Layout, Rect, ValidDimensions, ValidRect

logger = logging.getLogger(__name__)


# Canonical names for the nine slices, in the order Layout emits them.
SLICE_NAMES: List[str] = [
    "corner_tl", "edge_top",    "corner_tr",
    "edge_left", "center",      "edge_right",
    "corner_bl", "edge_bottom", "corner_br",
]


def source_dimensions(img: Image.Image, borders: Rect[int]) -> ValidDimensions[int]:
    """Return the 9-slice of *img* with the given border thicknesses.

    Raises NinesError if a border is negative or the borders overlap.
    """
    outer = Rect.xywh(0, 0, img.width, img.height)
    return Dimensions.from_borders(outer, borders).validate()


def crop_box(rect: ValidRect[int]) -> Tuple[int, int, int, int]:
    """Return *rect* as a PIL crop box: (left, top, right, bottom)."""
    return rect.left, rect.top, rect.right, rect.bottom


def _xywh(rect: ValidRect) -> Dict[str, Any]:
    return {"x": rect.left, "y": rect.top, "w": rect.width(), "h": rect.height()}


def slice_image(img: Image.Image, dims: ValidDimensions[int]) -> Dict[str, Image.Image]:
    """Crop *img* into its 9 cells keyed by slice name."""
    cells = Layout(dst=dims, src=dims).collect_dst_src()
    logger.debug("Slicing %dx%d image into %d cells", img.width, img.height, len(cells))
    return {name: img.crop(crop_box(src)) for name, (_, src) in zip(SLICE_NAMES, cells)}


def layout_table(layout: Layout) -> Dict[str, Any]:
    """Describe a layout as JSON-serializable data.

    Accepts a raw or validated layout; a raw one is validated first.
    """
    layout = layout.validate()
    style = layout.style
    pairs = layout.collect_dst_src()
    return {
        "style": {
            "border": {side: getattr(style.border, side).value
                       for side in ("left", "right", "top", "bottom")},
            "center": {"horizontal": style.center.horizontal.value,
                       "vertical": style.center.vertical.value},
        },
        "slices": {name: {"dst": _xywh(dst), "src": _xywh(src)}
                   for name, (dst, src) in zip(SLICE_NAMES, pairs)},
    }
