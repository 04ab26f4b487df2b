"""
Core 9-slice layout math.  Validated geometry, no image dependencies.

A 9-slice is described by an *outer* rectangle and a nested *inner*
rectangle.  The four inner edges carve the outer rectangle into a 3×3 grid:

    TL | T | TR
    ---+---+---
     L | C | R
    ---+---+---
    BL | B | BR

A :class:`Layout` pairs a destination 9-slice with a source 9-slice and
yields one (dst, src) rectangle pair per cell, in the row-major order above.

Raw values (:class:`Rect`, :class:`Dimensions`) are plain frozen dataclasses
with no invariants.  Their validated counterparts (:class:`ValidRect`,
:class:`ValidDimensions`) are read-only wrappers that can only be obtained by
validating.  Layout math only ever sees validated values.

Scalar arithmetic is the host type's: Python ints never overflow, floats
saturate to ``inf`` and numpy fixed-width types follow numpy's rules.  None
of that is reported as a :class:`NinesError`.
"""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, List, NoReturn, Optional, Tuple, TypeVar

from nines_settings import get_settings

logger = logging.getLogger(__name__)

V = TypeVar("V")
D = TypeVar("D")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class NinesError(ValueError):
    """A validation failure.  Opaque: only the message tells failures apart."""


def _reject(message: str) -> NoReturn:
    logger.debug("Validation failed: %s", message)
    raise NinesError(message)


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------
def _is_unsigned(value: Any) -> bool:
    # numpy-style fixed-width scalars expose their kind via ``dtype``.
    dtype = getattr(value, "dtype", None)
    return getattr(dtype, "kind", None) == "u"


def is_scalar(value: Any) -> bool:
    """Return True if *value* may be used as a coordinate.

    Signed integers and floats are accepted.  Unsigned integers are only
    accepted with ``NINES_UNSIGNED_SCALAR`` set, since they are trivial to
    underflow in UI layout.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return not _is_unsigned(value) or get_settings().unsigned_scalar


def _check_scalars(*values: Any) -> None:
    for value in values:
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            _reject(f"Expected a real-number scalar, got {type(value).__name__}")
        if _is_unsigned(value) and not get_settings().unsigned_scalar:
            _reject("Unsigned scalars are disabled; set NINES_UNSIGNED_SCALAR=1 to allow them")


# ---------------------------------------------------------------------------
# Read-only wrapper
# ---------------------------------------------------------------------------
class _Validated:
    """Opaque wrapper around a value that already passed validation.

    There is no way to mutate the wrapped value: attribute
    assignment raises, and the only constructors are the validating
    ``__init__`` and the internal :meth:`_trusted`.
    """

    __slots__ = ("_value",)
    _raw_type: type = object

    def __init__(self, value: Any) -> None:
        checked = value.validate()
        if not isinstance(checked, type(self)):
            raise TypeError(f"{type(value).__name__} does not validate to {type(self).__name__}")
        object.__setattr__(self, "_value", checked._value)

    @classmethod
    def _trusted(cls, value: Any):
        """Wrap *value* without checking it.  Only for locally-provable invariants."""
        self = object.__new__(cls)
        object.__setattr__(self, "_value", value)
        return self

    def validate(self):
        """Re-run validation on the wrapped value."""
        return self._value.validate()

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is read-only")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, _Validated):
            return type(other) is type(self) and self._value == other._value
        if isinstance(other, self._raw_type):
            return self._value == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __reduce__(self):
        # Unpickling goes back through the validating constructor.
        return (type(self), (self._value,))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"


# ---------------------------------------------------------------------------
# Axises
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Axises(Generic[V]):
    """A { horizontal, vertical } pair."""
    horizontal: V
    vertical: V


# ---------------------------------------------------------------------------
# Rect / ValidRect
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Rect(Generic[V]):
    """An axis-aligned rectangle, generally exclusive of its right/bottom edge.

    No invariant is enforced: ``right`` may be less than ``left`` and fields
    may be NaN.  Call :meth:`validate` to get a :class:`ValidRect`.
    """
    left: V
    right: V
    top: V
    bottom: V

    @classmethod
    def xywh(cls, x: V, y: V, w: V, h: V) -> Rect[V]:
        return cls(left=x, right=x + w, top=y, bottom=y + h)

    @classmethod
    def from_spans(cls, horizontal: Tuple[V, V], vertical: Tuple[V, V]) -> Rect[V]:
        """Build from ``(left, right)`` and ``(top, bottom)`` spans."""
        return cls(left=horizontal[0], right=horizontal[1], top=vertical[0], bottom=vertical[1])

    @classmethod
    def from_points(cls, start: Tuple[V, V], end: Tuple[V, V]) -> Rect[V]:
        """Build from the ``(left, top)`` and ``(right, bottom)`` corners."""
        return cls(left=start[0], right=end[0], top=start[1], bottom=end[1])

    def grow(self, borders: Any) -> Rect[V]:
        """Move every edge outward by the matching component of *borders*.  Not validated."""
        return Rect(
            left=self.left - borders.left,
            right=self.right + borders.right,
            top=self.top - borders.top,
            bottom=self.bottom + borders.bottom,
        )

    def shrink(self, borders: Any) -> Rect[V]:
        """Move every edge inward by the matching component of *borders*.  Not validated."""
        return Rect(
            left=self.left + borders.left,
            right=self.right - borders.right,
            top=self.top + borders.top,
            bottom=self.bottom - borders.bottom,
        )

    def _first_violation(self) -> Optional[str]:
        # Written as ``not (a <= b)`` so that NaN fails the check.
        if not (self.left <= self.right):
            return "Expected left ≤ right"
        if not (self.top <= self.bottom):
            return "Expected top ≤ bottom"
        return None

    def validate(self) -> ValidRect[V]:
        """Validate that this rectangle has non-negative, non-NaN extents::

            left ≤ right
            top ≤ bottom

        Raises NinesError naming the first inequality that fails.
        """
        _check_scalars(self.left, self.right, self.top, self.bottom)
        violation = self._first_violation()
        if violation is not None:
            _reject(violation)
        return ValidRect._trusted(self)

    def _debug_assert_valid(self) -> ValidRect[V]:
        if get_settings().debug:
            violation = self._first_violation()
            assert violation is None, violation
        return ValidRect._trusted(self)


class ValidRect(_Validated, Generic[V]):
    """A :class:`Rect` proven to satisfy ``left ≤ right`` and ``top ≤ bottom``.

    ``ValidRect(rect)`` is the same as ``rect.validate()``; ``.rect`` gives the
    raw value back.
    """

    __slots__ = ()
    _raw_type = Rect

    @property
    def rect(self) -> Rect[V]:
        return self._value

    @property
    def left(self) -> V:
        return self._value.left

    @property
    def right(self) -> V:
        return self._value.right

    @property
    def top(self) -> V:
        return self._value.top

    @property
    def bottom(self) -> V:
        return self._value.bottom

    def width(self) -> V:
        return self.right - self.left

    def height(self) -> V:
        return self.bottom - self.top

    def size(self) -> Tuple[V, V]:
        return self.width(), self.height()

    def grow(self, borders: Any) -> Rect[V]:
        return self._value.grow(borders)

    def shrink(self, borders: Any) -> Rect[V]:
        return self._value.shrink(borders)


def _raw_rect(rect: Any) -> Rect:
    return rect.rect if isinstance(rect, ValidRect) else rect


# ---------------------------------------------------------------------------
# Dimensions / ValidDimensions
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Dimensions(Generic[V]):
    """The outer and inner rectangles of a 9-slice.

        left             right
         |<--- outer --->|
         |  |<-inner->|  |
         +--+---------+--+ top
         |  |         |  |
         +--+---------+--+
         |  |         |  |
         +--+---------+--+
         |  |         |  |
         +--+---------+--+ bottom
    """
    outer: Rect[V]
    inner: Rect[V]

    def __post_init__(self) -> None:
        object.__setattr__(self, "outer", _raw_rect(self.outer))
        object.__setattr__(self, "inner", _raw_rect(self.inner))

    @classmethod
    def from_borders(cls, outer: Rect[V], borders: Rect[V]) -> Dimensions[V]:
        """Carve *borders* off the inside of *outer*.  Not validated."""
        outer = _raw_rect(outer)
        return cls(outer=outer, inner=outer.shrink(borders))

    def _first_violation(self) -> Optional[str]:
        o, i = self.outer, self.inner
        if not (o.left <= i.left):
            return "Expected outer.left ≤ inner.left"
        if not (i.left <= i.right):
            return "Expected inner.left ≤ inner.right"
        if not (i.right <= o.right):
            return "Expected inner.right ≤ outer.right"
        if not (o.top <= i.top):
            return "Expected outer.top ≤ inner.top"
        if not (i.top <= i.bottom):
            return "Expected inner.top ≤ inner.bottom"
        if not (i.bottom <= o.bottom):
            return "Expected inner.bottom ≤ outer.bottom"
        return None

    def validate(self) -> ValidDimensions[V]:
        """Validate that the inner rect nests inside the outer one::

            outer.left ≤ inner.left ≤ inner.right ≤ outer.right
            outer.top  ≤ inner.top  ≤ inner.bottom ≤ outer.bottom

        Raises NinesError naming the first inequality that fails, checking
        left to right and then top to bottom.
        """
        o, i = self.outer, self.inner
        _check_scalars(o.left, o.right, o.top, o.bottom, i.left, i.right, i.top, i.bottom)
        violation = self._first_violation()
        if violation is not None:
            _reject(violation)
        return ValidDimensions._trusted(self)

    def _debug_assert_valid(self) -> ValidDimensions[V]:
        if get_settings().debug:
            violation = self._first_violation()
            assert violation is None, violation
        return ValidDimensions._trusted(self)


class ValidDimensions(_Validated, Generic[V]):
    """:class:`Dimensions` proven to nest properly, so every border is non-negative."""

    __slots__ = ()
    _raw_type = Dimensions

    @property
    def dimensions(self) -> Dimensions[V]:
        return self._value

    @property
    def outer(self) -> ValidRect[V]:
        return self._value.outer._debug_assert_valid()

    @property
    def inner(self) -> ValidRect[V]:
        return self._value.inner._debug_assert_valid()

    def borders(self) -> Rect[V]:
        """Return the border thicknesses, i.e. the gaps between the outer and inner rects."""
        o, i = self._value.outer, self._value.inner
        return Rect(
            left=i.left - o.left,
            right=o.right - i.right,
            top=i.top - o.top,
            bottom=o.bottom - i.bottom,
        )

    def with_outer(self, outer: Any) -> ValidDimensions[V]:
        """Return a 9-slice with the given outer rect and the same border thicknesses.

        Raises NinesError if *outer* is invalid or the center would end up
        with a negative (or NaN) width or height.
        """
        borders = self.borders()
        outer = outer.validate()
        # An infinite bound gives ``inf - inf == nan`` borders, which must fail too.
        if not (borders.left + borders.right <= outer.width()):
            _reject("Resulting dimensions would have a negative center width")
        if not (borders.top + borders.bottom <= outer.height()):
            _reject("Resulting dimensions would have a negative center height")
        return Dimensions(outer=outer.rect, inner=outer.shrink(borders)).validate()

    def with_inner(self, inner: Any) -> ValidDimensions[V]:
        """Return a 9-slice with the given inner rect and the same border thicknesses.

        Unlike :meth:`with_outer` the result is not re-checked: the outer rect
        is grown from *inner* and trusted.  A raw Rect is validated first.
        Overflow is not caught, and neither are non-finite bounds: a 9-slice
        with an infinite edge has NaN borders, so the grown outer rect may hold
        NaN.  Use :meth:`with_outer` when the input may not be finite.
        """
        if not isinstance(inner, ValidRect):
            inner = inner.validate()
        borders = self.borders()
        return Dimensions(outer=inner.grow(borders), inner=inner.rect)._debug_assert_valid()


# ---------------------------------------------------------------------------
# Scale / Style
# ---------------------------------------------------------------------------
class Scale(Enum):
    """How a strip of source content fills a destination strip.

    Values follow the CSS ``border-image-repeat`` keywords.  Only STRETCH is
    implemented by :class:`Layout`.

    Attributes:
        STRETCH: Source used exactly once, scaled up/down as needed.
        REPEAT: Source tiled ``floor(dst / src)`` times around a centered fraction.
        ROUND: Source tiled ``max(1, round(dst / src))`` times, scaled to fit.
        SPACE: Source tiled ``floor(dst / src)`` times with gaps between tiles.
    """

    STRETCH = "stretch"
    REPEAT = "repeat"
    ROUND = "round"
    SPACE = "space"

    @classmethod
    def parse(cls, keyword: str) -> Scale:
        try:
            return cls(keyword.strip().lower())
        except ValueError:
            raise NinesError(f"Unknown scale keyword: {keyword!r}") from None


def _stretch_border() -> Rect[Scale]:
    return Rect(left=Scale.STRETCH, right=Scale.STRETCH, top=Scale.STRETCH, bottom=Scale.STRETCH)


def _stretch_center() -> Axises[Scale]:
    return Axises(horizontal=Scale.STRETCH, vertical=Scale.STRETCH)


@dataclass(frozen=True)
class Style:
    """Scaling policy of a 9-slice.

    Per-cell (horizontal, vertical) policies:

        corners            (STRETCH, STRETCH)
        top/bottom edges   (STRETCH, border.top / border.bottom)
        left/right edges   (border.left / border.right, STRETCH)
        center             (center.horizontal, center.vertical)

    :meth:`new_horizontal_vertical` fills ``border.top``/``border.bottom``
    with the horizontal policy and ``border.left``/``border.right`` with the
    vertical one.
    """
    border: Rect[Scale] = field(default_factory=_stretch_border)
    center: Axises[Scale] = field(default_factory=_stretch_center)

    @classmethod
    def new(cls, scale: Scale = Scale.STRETCH) -> Style:
        """Same scaling on every axis."""
        return cls.new_horizontal_vertical(scale, scale)

    @classmethod
    def new_horizontal_vertical(cls, horizontal: Scale, vertical: Scale) -> Style:
        """Uniform scaling along each axis."""
        return cls(
            border=Rect(left=vertical, right=vertical, top=horizontal, bottom=horizontal),
            center=Axises(horizontal=horizontal, vertical=vertical),
        )

    @classmethod
    def from_css(cls, value: str) -> Style:
        """Parse a ``border-image-repeat`` value: one keyword, or horizontal then vertical."""
        keywords = value.split()
        if not 1 <= len(keywords) <= 2:
            raise NinesError(f"Expected one or two scale keywords, got {len(keywords)}")
        horizontal = Scale.parse(keywords[0])
        vertical = Scale.parse(keywords[-1])
        return cls.new_horizontal_vertical(horizontal, vertical)


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------
DstSrcCallback = Callable[[ValidRect, ValidRect], Any]


@dataclass(frozen=True)
class Layout(Generic[D]):
    """A destination and source 9-slice, plus the style to map one onto the other.

    Build it from raw :class:`Dimensions`, then :meth:`validate` it to get a
    layout over :class:`ValidDimensions` that can be enumerated::

        layout = Layout(
            dst=Dimensions(outer=Rect.xywh(0, 0, 5, 4), inner=Rect.xywh(1, 1, 3, 2)),
            src=Dimensions(outer=Rect.xywh(0, 0, 3, 3), inner=Rect.xywh(1, 1, 1, 1)),
        )
        layout.validate().each_dst_src(lambda dst, src: print(dst, src))
    """
    dst: D
    src: D
    style: Style = field(default_factory=Style)

    def validate(self) -> Layout[ValidDimensions]:
        """Validate ``dst`` then ``src``.  Raises the first NinesError found."""
        return Layout(dst=self.dst.validate(), src=self.src.validate(), style=self.style)

    def each_dst_src(self, each_dst_src: DstSrcCallback) -> None:
        """Call ``each_dst_src(dst, src)`` once per cell, in row-major order.

        Raises NotImplementedError, before any call, if the style asks for
        anything other than Scale.STRETCH.
        """
        if not (isinstance(self.dst, ValidDimensions) and isinstance(self.src, ValidDimensions)):
            raise TypeError("Layout must be validated before enumerating; call validate() first")
        do_layout_9(self.dst, self.src, self.style, each_dst_src)

    def collect_dst_src(self) -> List[Tuple[ValidRect, ValidRect]]:
        """Return the 9 (dst, src) pairs as a list."""
        pairs: List[Tuple[ValidRect, ValidRect]] = []
        self.each_dst_src(lambda dst, src: pairs.append((dst, src)))
        return pairs


def _cell_scales(style: Style) -> List[Tuple[int, int, Scale, Scale]]:
    stretch = Scale.STRETCH
    return [
        (0, 0, stretch, stretch),                                   # Corner: top left
        (1, 0, stretch, style.border.top),                          # Edge: top
        (2, 0, stretch, stretch),                                   # Corner: top right
        (0, 1, style.border.left, stretch),                         # Edge: left
        (1, 1, style.center.horizontal, style.center.vertical),     # Center
        (2, 1, style.border.right, stretch),                        # Edge: right
        (0, 2, stretch, stretch),                                   # Corner: bottom left
        (1, 2, stretch, style.border.bottom),                       # Edge: bottom
        (2, 2, stretch, stretch),                                   # Corner: bottom right
    ]


def _breakpoints(dims: ValidDimensions) -> Tuple[List[Any], List[Any]]:
    o, i = dims.dimensions.outer, dims.dimensions.inner
    return [o.left, i.left, i.right, o.right], [o.top, i.top, i.bottom, o.bottom]


def _require_stretch(horizontal: Scale, vertical: Scale) -> None:
    # TODO: tile for REPEAT/ROUND/SPACE instead of refusing them.
    if horizontal is not Scale.STRETCH:
        raise NotImplementedError(f"Non-default horizontal scale not yet implemented: {horizontal!r}")
    if vertical is not Scale.STRETCH:
        raise NotImplementedError(f"Non-default vertical scale not yet implemented: {vertical!r}")


def do_layout_9(
    dst: ValidDimensions, src: ValidDimensions, style: Style, each_dst_src: DstSrcCallback
) -> None:
    """Split *dst* and *src* into their 9 cells and pass each aligned pair on."""
    cells = _cell_scales(style)
    for _, _, horizontal, vertical in cells:
        _require_stretch(horizontal, vertical)

    dstx, dsty = _breakpoints(dst)
    srcx, srcy = _breakpoints(src)
    logger.debug("Laying out %r onto %r", src, dst)

    for x, y, horizontal, vertical in cells:
        # Breakpoints are monotonic, so every cell of a valid 9-slice is valid.
        do_layout_1(
            Rect(left=dstx[x], right=dstx[x + 1], top=dsty[y], bottom=dsty[y + 1])._debug_assert_valid(),
            Rect(left=srcx[x], right=srcx[x + 1], top=srcy[y], bottom=srcy[y + 1])._debug_assert_valid(),
            horizontal,
            vertical,
            each_dst_src,
        )


def do_layout_1(
    dst: ValidRect, src: ValidRect, horizontal: Scale, vertical: Scale, each_dst_src: DstSrcCallback
) -> None:
    """Lay out a single cell.  Stretch maps *src* onto *dst* unchanged."""
    _require_stretch(horizontal, vertical)
    each_dst_src(dst, src)
