from __future__ import annotations
from typing import TYPE_CHECKING, List, Optional, Sequence
from .highlights import Position, Scaled, WireModel

if TYPE_CHECKING:  # pragma: no cover
    from .viewer import BaseViewer

# Three spaces are in play:
#  - page-intrinsic: PDF points, what the document itself measures in
#  - viewport: pixels of one rendered page at the current zoom (origin top-left of that page)
#  - scaled: viewport corners + the viewport size they were taken in (zoom independent)


class ViewportRect(WireModel):
    left: float
    top: float
    width: float
    height: float
    page_number: Optional[int] = None

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


def viewport_to_scaled(rect: ViewportRect, viewport_width: float, viewport_height: float) -> Scaled:
    return Scaled(
        x1=rect.left,
        y1=rect.top,
        x2=rect.right,
        y2=rect.bottom,
        width=viewport_width,
        height=viewport_height,
        page_number=rect.page_number,
    )


def scaled_to_viewport(scaled: Scaled, viewport_width: float, viewport_height: float) -> ViewportRect:
    """Project a scaled rectangle into a page viewport of the given pixel size."""
    if not scaled.width or not scaled.height:
        raise ValueError("Scaled rectangle has no reference viewport size")
    x1 = viewport_width * scaled.x1 / scaled.width
    y1 = viewport_height * scaled.y1 / scaled.height
    x2 = viewport_width * scaled.x2 / scaled.width
    y2 = viewport_height * scaled.y2 / scaled.height
    return ViewportRect(left=x1, top=y1, width=x2 - x1, height=y2 - y1, page_number=scaled.page_number)


def viewport_position_to_scaled(bounding: ViewportRect, rects: Sequence[ViewportRect],
                                viewport_width: float, viewport_height: float) -> Position:
    page_number = bounding.page_number or 1
    scaled_rects: List[Scaled] = [viewport_to_scaled(r, viewport_width, viewport_height) for r in rects]
    return Position(
        bounding_rect=viewport_to_scaled(bounding, viewport_width, viewport_height),
        rects=scaled_rects or [viewport_to_scaled(bounding, viewport_width, viewport_height)],
        page_number=page_number,
    )


class CoordinateGateway:
    """Stateless pass-through to the viewer's conversion and capture capabilities.

    Nothing is cached: a conversion is only valid for the scale applied when it was made."""

    def __init__(self, viewer: 'BaseViewer'):
        self.viewer = viewer

    def to_scaled_position(self, viewport_rect: ViewportRect) -> Scaled:
        return self.viewer.to_scaled_position(viewport_rect)

    def capture_image(self, viewport_rect: ViewportRect) -> str:
        return self.viewer.capture_image(viewport_rect)
