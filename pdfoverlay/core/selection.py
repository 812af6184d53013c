from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional, Union
import logging
from .coordinates import CoordinateGateway, ViewportRect
from .highlights import Comment, Content, Highlight, HighlightStore, NewHighlight, Position

logger = logging.getLogger(__name__)


def popup_text(comment: Comment) -> Optional[str]:
    """Hover text for a highlight; an empty comment shows nothing."""
    if not comment.text:
        return None
    return f"{comment.emoji} {comment.text}".strip()


class Tip:
    """Transient confirmation affordance for one finished selection."""

    def __init__(self, pipeline: 'SelectionPipeline', position: Position, content: Content,
                 hide_tip_and_selection: Callable[[], None], transform_selection: Callable[[], None]):
        self._pipeline = pipeline
        self.position = position
        self.content = content
        self._hide = hide_tip_and_selection
        self._transform = transform_selection
        self.expired = False

    def open(self):
        if not self.expired:
            self._transform()

    def confirm(self, comment: Optional[Comment] = None) -> Optional[Highlight]:
        if self.expired:
            logger.debug("Ignoring confirmation of an expired selection")
            return None
        self.expired = True
        highlight = self._pipeline.store.add(NewHighlight(
            content=self.content,
            position=self.position,
            comment=comment or Comment(),
        ))
        self._hide()
        self._pipeline._release(self)
        return highlight

    def cancel(self):
        if self.expired:
            return
        self.expired = True
        self._hide()
        self._pipeline._release(self)


@dataclass
class TextHighlightView:
    highlight: Highlight
    index: int
    is_scrolled_to: bool = False

    @property
    def popup(self) -> Optional[str]:
        return popup_text(self.highlight.comment)


@dataclass
class AreaHighlightView:
    highlight: Highlight
    index: int
    gateway: Optional[CoordinateGateway]
    store: HighlightStore
    is_scrolled_to: bool = False

    @property
    def popup(self) -> Optional[str]:
        return popup_text(self.highlight.comment)

    def on_change(self, bounding_rect: ViewportRect):
        """Bounds dragged/resized in the viewer: re-derive geometry and snapshot at the current scale."""
        if self.gateway is None:
            return
        self.store.update(
            self.highlight.id,
            {"bounding_rect": self.gateway.to_scaled_position(bounding_rect)},
            {"image": self.gateway.capture_image(bounding_rect)},
        )


HighlightView = Union[TextHighlightView, AreaHighlightView]


class SelectionPipeline:
    def __init__(self, store: HighlightStore, gateway: Optional[CoordinateGateway] = None):
        self.store = store
        self.gateway = gateway
        self.pending: Optional[Tip] = None

    def on_selection_finished(self, position: Position, content: Content,
                              hide_tip_and_selection: Callable[[], None],
                              transform_selection: Callable[[], None]) -> Tip:
        if self.pending is not None:
            # the viewer replaced the old selection itself; nothing to hide
            self.pending.expired = True
        self.pending = Tip(self, position, content, hide_tip_and_selection, transform_selection)
        return self.pending

    def cancel_pending(self):
        if self.pending is not None:
            self.pending.cancel()
        self.pending = None

    def _release(self, tip: Tip):
        if self.pending is tip:
            self.pending = None

    def render_item(self, highlight: Highlight, index: int, is_scrolled_to: bool = False) -> HighlightView:
        if highlight.is_text:
            return TextHighlightView(highlight, index, is_scrolled_to)
        return AreaHighlightView(highlight, index, self.gateway, self.store, is_scrolled_to)
