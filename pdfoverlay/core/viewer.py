from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Sequence
from .coordinates import ViewportRect
from .highlights import Content, Highlight, Position, Scaled

# Callback shapes the viewer invokes
ScrollTo = Callable[[Highlight], None]
SelectionFinished = Callable[[Position, Content, Callable[[], None], Callable[[], None]], Any]
HighlightTransform = Callable[..., Any]  # (highlight, index, is_scrolled_to=False) -> view


class BaseViewer(ABC):
    """Capabilities the overlay needs from the component that renders the document.

    Implementations wrap a concrete rendering engine. Overlay code only talks to this
    interface and never reaches into the engine itself."""

    highlight_transform: Optional[HighlightTransform] = None

    @abstractmethod
    def is_ready(self) -> bool:
        """True once the rendering surface exists and has a document mounted."""

    @abstractmethod
    def render(self, highlights: Sequence[Highlight]):
        ...

    @abstractmethod
    def get_current_scale(self) -> float:
        ...

    @abstractmethod
    def set_scale_value(self, label: str):
        ...

    @abstractmethod
    def to_scaled_position(self, viewport_rect: ViewportRect) -> Scaled:
        ...

    @abstractmethod
    def capture_image(self, viewport_rect: ViewportRect) -> str:
        ...

    @abstractmethod
    def on_selection_finished(self, callback: SelectionFinished):
        ...

    @abstractmethod
    def on_scroll_ready(self, callback: Callable[[ScrollTo], None]):
        """Register for the viewer's scroll-to function; called back once mounted."""

    @abstractmethod
    def on_user_scroll(self, callback: Callable[[], None]):
        ...

    def set_highlight_transform(self, transform: HighlightTransform):
        self.highlight_transform = transform

