# Ensure project root is on sys.path for test imports
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.resolve()
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pdfoverlay.core.coordinates import viewport_to_scaled  # noqa: E402
from pdfoverlay.core.viewer import BaseViewer  # noqa: E402


class FakeViewer(BaseViewer):
    """In-memory viewer: records what the overlay asks of it."""

    def __init__(self, scale=1.0, ready=True, page_size=(600.0, 800.0)):
        self.scale = scale
        self.ready = ready
        self.page_size = page_size
        self.pushed = []
        self.renders = []
        self.scrolled = []
        self.selection_cb = None
        self.scroll_ready_cb = None
        self.user_scroll_cbs = []

    def is_ready(self):
        return self.ready

    def render(self, highlights):
        self.renders.append(list(highlights))

    def get_current_scale(self):
        return self.scale

    def set_scale_value(self, label):
        self.pushed.append(label)
        self.scale = float(label)

    def to_scaled_position(self, viewport_rect):
        w, h = self.page_size
        return viewport_to_scaled(viewport_rect, w * self.scale, h * self.scale)

    def capture_image(self, viewport_rect):
        return f"data:image/png;base64,{int(viewport_rect.width)}x{int(viewport_rect.height)}"

    def on_selection_finished(self, callback):
        self.selection_cb = callback

    def on_scroll_ready(self, callback):
        self.scroll_ready_cb = callback

    def on_user_scroll(self, callback):
        self.user_scroll_cbs.append(callback)

    # simulate the asynchronous mount completing
    def mount(self):
        self.ready = True
        self.scroll_ready_cb(self.scroll_to)

    def scroll_to(self, highlight):
        self.scrolled.append(highlight.id)

    def user_scrolls(self):
        for cb in self.user_scroll_cbs:
            cb()


@pytest.fixture
def make_viewer():
    return FakeViewer
